"""
String utility functions.
"""

import re

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+")

# Angular class-name suffixes stripped when deriving React names
DECLARATION_SUFFIXES = ("Component", "Directive", "Service", "Pipe", "Module")


def split_words(text: str) -> list:
    """Split camelCase, PascalCase, kebab-case and snake_case into words."""
    words = []
    for chunk in re.findall(r"[a-zA-Z0-9]+", text):
        words.extend(_WORD_RE.findall(chunk))
    return words


def to_pascal_case(text: str) -> str:
    """Convert string to PascalCase."""
    return "".join(word[:1].upper() + word[1:] for word in split_words(text))


def to_camel_case(text: str) -> str:
    """Convert string to camelCase."""
    pascal = to_pascal_case(text)
    if not pascal:
        return ""
    return pascal[0].lower() + pascal[1:]


def upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def strip_declaration_suffix(class_name: str) -> str:
    """``UserCardComponent`` -> ``UserCard``; bare suffixes are kept."""
    for suffix in DECLARATION_SUFFIXES:
        if class_name.endswith(suffix) and len(class_name) > len(suffix):
            return class_name[: -len(suffix)]
    return class_name


def hook_name(name: str) -> str:
    """``UserService`` -> ``useUserService``."""
    return "use" + upper_first(name)


def callback_prop_name(output_name: str) -> str:
    """Naming transform applied to component outputs: ``userSelected`` -> ``onUserSelected``."""
    return "on" + upper_first(output_name)


def setter_name(state_name: str) -> str:
    """``user`` -> ``setUser``."""
    return "set" + upper_first(state_name)
