"""
Context generator for Angular modules.

A module becomes ``XContext`` + ``XProvider`` + ``useXContext``: the
provider calls the hook of every service the module provides and shares
the results with its subtree.
"""

from ..transformer.target import ContextArtifact
from ..utils.logger import get_logger
from .base_generator import BaseGenerator, GenerationContext, quote

logger = get_logger(__name__)


class ContextGenerator(BaseGenerator):
    """Generates context provider modules."""

    def generate(self, artifact: ContextArtifact, context: GenerationContext) -> str:
        """
        Generate a context module.

        Args:
            artifact: Context artifact
            context: Generation context

        Returns:
            TSX module text
        """
        logger.debug(f"Generating context {artifact.name}")
        value_type = f"{artifact.name}Value"
        keys = [p.name for p in artifact.providers]

        if artifact.providers:
            fields = "\n".join(f"  {p.name}: {p.type};" for p in artifact.providers)
            value_decl = f"export interface {value_type} {{\n{fields}\n}}"
        else:
            value_decl = f"export type {value_type} = Record<string, never>;"

        provider = [f"export function {artifact.provider}({{ children }}: {{ children?: ReactNode }}) {{"]
        provider.extend(f"  const {p.name} = {p.value};" for p in artifact.providers)
        shape = "{ " + ", ".join(keys) + " }" if keys else "{}"
        provider.append(f"  const value = useMemo(() => ({shape}), [{', '.join(keys)}]);")
        provider.append(f"  return <{artifact.name}.Provider value={{value}}>{{children}}</{artifact.name}.Provider>;")
        provider.append("}")
        provider_text = "\n".join(provider)
        if artifact.comment:
            provider_text = f"// {artifact.comment}\n{provider_text}"

        message = quote(f"{artifact.hook} must be used within <{artifact.provider}>")
        hook = "\n".join([
            f"export function {artifact.hook}(): {value_type} {{",
            f"  const value = useContext({artifact.name});",
            "  if (value === null) {",
            f"    throw new Error({message});",
            "  }",
            "  return value;",
            "}",
        ])

        body = "\n\n".join([
            value_decl,
            f"export const {artifact.name} = createContext<{value_type} | null>(null);",
            provider_text,
            hook,
        ])
        return self._compose(artifact.imports, body, context, jsx=True)
