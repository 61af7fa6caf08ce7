"""
Utility module generator (pipe functions, copied type declarations, support modules).
"""

from ..transformer.target import UtilArtifact
from ..utils.logger import get_logger
from .base_generator import BaseGenerator, GenerationContext

logger = get_logger(__name__)


class UtilGenerator(BaseGenerator):
    """Generates plain utility modules."""

    def generate(self, artifact: UtilArtifact, context: GenerationContext) -> str:
        logger.debug(f"Generating util {artifact.name}")
        if artifact.raw is not None:
            return self._compose(artifact.imports, artifact.raw, context)

        sections = []
        declarations = [self._generate_const(c) for c in artifact.constants]
        declarations += [self._generate_const(m, keyword="let") for m in artifact.mutable]
        if declarations:
            sections.append("\n".join(declarations))
        for function in artifact.functions:
            sections.append(self._generate_function(function, exported=function.name in artifact.exported))
        return self._compose(artifact.imports, "\n\n".join(sections), context)
