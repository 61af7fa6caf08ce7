"""
Route table generator.

Renders a react-router ``RouteObject[]`` table and a component that
renders it through ``useRoutes``.
"""

from typing import List

from ..transformer.target import RouteArtifact, RouteEntry
from ..utils.logger import get_logger
from .base_generator import INDENT, BaseGenerator, GenerationContext, indent, quote

logger = get_logger(__name__)


class RouteGenerator(BaseGenerator):
    """Generates route modules."""

    def generate(self, artifact: RouteArtifact, context: GenerationContext) -> str:
        """
        Generate a route module.

        Args:
            artifact: Route artifact
            context: Generation context

        Returns:
            TSX module text
        """
        logger.debug(f"Generating routes {artifact.name}")
        lines = [f"export const {artifact.table}: RouteObject[] = ["]
        for entry in artifact.routes:
            lines.extend(indent(line) if line else line for line in self._entry(entry))
        lines.append("];")

        component = "\n".join([
            f"export default function {artifact.name}() {{",
            f"{INDENT}return useRoutes({artifact.table});",
            "}",
        ])
        return self._compose(artifact.imports, "\n".join(lines) + "\n\n" + component, context, jsx=True)

    def _entry(self, entry: RouteEntry) -> List[str]:
        fields = []
        if entry.index:
            fields.append("index: true")
        elif entry.path is not None:
            fields.append(f"path: {quote(entry.path)}")
        if entry.redirect is not None:
            fields.append(f"element: <Navigate to={{{quote(entry.redirect)}}} replace />")
        elif entry.element is not None:
            fields.append(f"element: <{entry.element} />")

        lines = [f"// {entry.comment}"] if entry.comment else []
        if not entry.children:
            single = "{ " + ", ".join(fields) + " },"
            if len(single) <= 96:
                return lines + [single]
        lines.append("{")
        lines.extend(f"{INDENT}{field}," for field in fields)
        if entry.children:
            lines.append(f"{INDENT}children: [")
            for child in entry.children:
                lines.extend(indent(line, 2) if line else line for line in self._entry(child))
            lines.append(f"{INDENT}],")
        lines.append("},")
        return lines
