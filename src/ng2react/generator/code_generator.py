"""
Artifact dispatch for code generation.
"""

from typing import Callable, Optional

from ..transformer.target import (
    Artifact,
    ArtifactRef,
    ContextArtifact,
    HookArtifact,
    ReactComponentArtifact,
    RouteArtifact,
    StyleArtifact,
    UtilArtifact,
)
from ..utils.logger import get_logger
from .base_generator import GenerationContext
from .component_generator import ComponentGenerator
from .context_generator import ContextGenerator
from .css_generator import CSSGenerator
from .hook_generator import HookGenerator
from .route_generator import RouteGenerator
from .test_generator import TestGenerator
from .type_stripper import TypeStripper
from .util_generator import UtilGenerator

logger = get_logger(__name__)

JSX_ARTIFACTS = (ReactComponentArtifact, ContextArtifact, RouteArtifact)


def is_jsx(artifact: Artifact) -> bool:
    return isinstance(artifact, JSX_ARTIFACTS)


class CodeGenerator:
    """Renders artifacts as TypeScript, or as JavaScript with the types stripped."""

    def __init__(self, use_typescript: bool = True, react_major: int = 18):
        self.use_typescript = use_typescript
        self.react_major = react_major
        self.css_generator = CSSGenerator()
        self.test_generator = TestGenerator()
        self.type_stripper = TypeStripper()
        self._generators = {
            ReactComponentArtifact: ComponentGenerator(),
            HookArtifact: HookGenerator(),
            ContextArtifact: ContextGenerator(),
            RouteArtifact: RouteGenerator(),
            UtilArtifact: UtilGenerator(),
        }

    def _context(self, import_path: Callable[[ArtifactRef], str]) -> GenerationContext:
        return GenerationContext(typescript=self.use_typescript, react_major=self.react_major,
                                 import_path=import_path)

    def generate(self, artifact: Artifact, import_path: Callable[[ArtifactRef], str]) -> Optional[str]:
        """
        Generate the source text of one artifact.

        Args:
            artifact: Artifact to render
            import_path: Resolves another artifact to an import specifier relative to this one

        Returns:
            Module text, or None when the artifact is not emitted in this language
        """
        if isinstance(artifact, StyleArtifact):
            return self.css_generator.generate(artifact)
        if isinstance(artifact, UtilArtifact) and artifact.typed_only and not self.use_typescript:
            logger.debug(f"Skipping type-only module {artifact.name} in JavaScript output")
            return None
        generator = self._generators[type(artifact)]
        text = generator.generate(artifact, self._context(import_path))
        return text if self.use_typescript else self.type_stripper.strip(text)

    def generate_test(self, artifact: ReactComponentArtifact,
                      import_path: Callable[[ArtifactRef], str]) -> str:
        text = self.test_generator.generate(artifact, self._context(import_path))
        return text if self.use_typescript else self.type_stripper.strip(text)
