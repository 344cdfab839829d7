from __future__ import annotations

from typing import Any


def ucfirst(text: Any) -> str:
    """Upper-case the first character of ``text``, leaving the rest untouched.

    Works on any Unicode text, so ``ucfirst("élan") == "Élan"``. A character may
    expand when upper-cased (``"ß"`` becomes ``"SS"``). Empty strings and
    non-string values yield ``""``.
    """
    if not isinstance(text, str) or text == "":
        return ""
    return text[0].upper() + text[1:]


def resolve_accessor_name(
    prefix: str, attribute_name: str, use_conventional_casing: bool = True
) -> str:
    """Build the accessor method name for ``attribute_name``.

    >>> resolve_accessor_name("get", "name")
    'getName'
    >>> resolve_accessor_name("get_", "name", use_conventional_casing=False)
    'get_name'
    """
    if use_conventional_casing:
        return prefix + ucfirst(attribute_name)
    return prefix + attribute_name


class AccessorNameResolver:
    def __init__(self, use_conventional_casing: bool = True) -> None:
        self.use_conventional_casing = use_conventional_casing

    def resolve(self, prefix: str, attribute_name: str) -> str:
        return resolve_accessor_name(
            prefix, attribute_name, self.use_conventional_casing
        )
