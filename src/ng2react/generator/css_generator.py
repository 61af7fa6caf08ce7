"""
CSS generator for converted components.
"""

import re

from ..transformer.target import StyleArtifact
from ..utils.logger import get_logger

logger = get_logger(__name__)

_NG_DEEP_RE = re.compile(r"::ng-deep\s*|/deep/\s*|>>>\s*")


class CSSGenerator:
    """Generates the stylesheet of a converted component."""

    def generate(self, artifact: StyleArtifact) -> str:
        """
        Generate CSS from the component's inline styles and style files.

        Args:
            artifact: The style artifact

        Returns:
            Generated CSS code
        """
        logger.debug(f"Generating CSS for {artifact.name}")

        if not artifact.styles:
            return f"/* Styles for {artifact.name} component */\n"

        css_blocks = [self._generate_block(style) for style in artifact.styles]
        css = "\n\n".join(block for block in css_blocks if block)
        return f"/* Styles for {artifact.name} component */\n\n{css}\n"

    def _generate_block(self, style: str) -> str:
        """Drop view-encapsulation piercing combinators from one stylesheet."""
        return _NG_DEEP_RE.sub("", style).strip()
