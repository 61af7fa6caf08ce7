"""
Smoke test generator for converted components (@testing-library/react).
"""

import re
from typing import Optional

from ..transformer.target import PropField, ReactComponentArtifact
from ..utils.logger import get_logger
from .base_generator import BaseGenerator, GenerationContext, indent

logger = get_logger(__name__)

_PLACEHOLDERS = (
    (re.compile(r"=>"), "() => undefined"),
    (re.compile(r"^string$"), "''"),
    (re.compile(r"^number$"), "0"),
    (re.compile(r"^boolean$"), "false"),
    (re.compile(r"(\[\]|^(Readonly)?Array<.*>)$"), "[]"),
)


def placeholder(prop: PropField) -> Optional[str]:
    """A value satisfying a required prop, or None when the prop can be omitted."""
    if prop.optional or prop.default is not None:
        return None
    type_name = (prop.type or "any").strip()
    for pattern, value in _PLACEHOLDERS:
        if pattern.search(type_name):
            return value
    return "{} as any"


class TestGenerator(BaseGenerator):
    """Generates one render smoke test per component."""

    def generate(self, artifact: ReactComponentArtifact, context: GenerationContext) -> str:
        """
        Generate a smoke test.

        Args:
            artifact: The component under test
            context: Generation context whose ``import_path`` resolves from the test file

        Returns:
            TSX test module text
        """
        logger.debug(f"Generating test for {artifact.name}")
        values = [(p.name, placeholder(p)) for p in artifact.props]
        props = [f"{name}: {value}" for name, value in values if value is not None]
        element = f"<{artifact.name} {{...props}} />" if props else f"<{artifact.name} />"
        if self._uses_router(artifact):
            element = f"<MemoryRouter>{element}</MemoryRouter>"

        lines = []
        if props:
            lines.append("const props = {")
            lines.extend(f"  {p}," for p in props)
            lines.append("};")
        lines.append(f"const {{ container }} = render({element});")
        lines.append("expect(container).toBeTruthy();")

        body = "\n".join([
            f"describe('{artifact.name}', () => {{",
            "  it('renders without crashing', () => {",
            indent("\n".join(lines), 2),
            "  });",
            "});",
        ])
        imports = ["import { render } from '@testing-library/react';"]
        if self._uses_router(artifact):
            imports.append("import { MemoryRouter } from 'react-router-dom';")
        if context.react_major < 17:
            imports.insert(0, "import React from 'react';")
        imports.append(f"import {artifact.name} from '{context.import_path(artifact.ref)}';")
        return "\n".join(imports) + "\n\n" + body + "\n"

    @staticmethod
    def _uses_router(artifact: ReactComponentArtifact) -> bool:
        return any(spec.module == "react-router-dom" and not spec.type_only for spec in artifact.imports)
