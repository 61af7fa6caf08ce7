"""
Custom hook generator.

Renders services, pipe hooks and attribute-directive hooks as
``export function useX(...)`` modules.
"""

from ..transformer.target import HookArtifact
from ..utils.logger import get_logger
from .base_generator import BaseGenerator, GenerationContext, indent

logger = get_logger(__name__)


class HookGenerator(BaseGenerator):
    """Generates custom hook modules."""

    def generate(self, artifact: HookArtifact, context: GenerationContext) -> str:
        """
        Generate a hook module.

        Args:
            artifact: Hook artifact
            context: Generation context

        Returns:
            TypeScript module text
        """
        logger.debug(f"Generating hook {artifact.name}")
        if artifact.raw is not None:
            return self._compose(artifact.imports, artifact.raw, context)

        sections = []
        params = [p.signature() for p in artifact.params]
        inner = []
        if artifact.options:
            sections.append(self._generate_interface(artifact.options_type, artifact.options, all_optional=True))
            params.append(f"options: {artifact.options_type} = {{}}")
            inner.append(f"const {self._destructure(artifact.options)} = options;")

        body = self._generate_body(artifact.body)
        if body:
            inner.append(body)
        returned = self._generate_return(artifact)
        if returned:
            inner.append(returned)

        lines = [f"export function {artifact.name}({', '.join(params)}) {{"]
        if inner:
            lines.append(indent("\n\n".join(inner)))
        lines.append("}")
        sections.append("\n".join(lines))
        return self._compose(artifact.imports, "\n\n".join(sections), context)

    @staticmethod
    def _generate_return(artifact: HookArtifact) -> str:
        if artifact.return_expression is not None:
            return f"return {artifact.return_expression};"
        if not artifact.returns:
            return ""
        members = ",\n".join(f"  {name}" for name in artifact.returns)
        return f"return {{\n{members},\n}};"
