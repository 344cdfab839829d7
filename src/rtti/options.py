from __future__ import annotations

from enum import Enum
from typing import Any, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_GETTER_PREFIX = "get"
DEFAULT_SETTER_PREFIX = "set"


class Visibility(str, Enum):
    """Access level of an attribute, derived from its declared name."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"

    @classmethod
    def all(cls) -> FrozenSet["Visibility"]:
        return frozenset(cls)

    @property
    def is_restricted(self) -> bool:
        return self is not Visibility.PUBLIC


ANY_VISIBILITY: FrozenSet[Visibility] = Visibility.all()


class Operation(str, Enum):
    EXTRACT = "extract"
    INJECT = "inject"


class ResolutionOptions(BaseModel):
    """How attributes are selected and how accessor names are derived.

    ``accessor_prefix`` left as ``None`` resolves to ``"get"`` when extracting
    and ``"set"`` when injecting. ``recurse_into_nested_objects`` is ignored by
    injection.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    visibility: FrozenSet[Visibility] = ANY_VISIBILITY
    accessor_prefix: Optional[str] = None
    use_conventional_casing: bool = True
    recurse_into_nested_objects: bool = False

    @field_validator("visibility", mode="before")
    @classmethod
    def _coerce_visibility(cls, value: Any) -> Any:
        if value is None:
            return ANY_VISIBILITY
        if isinstance(value, str):
            return frozenset({value})
        return value

    def prefix_for(self, operation: Operation) -> str:
        if self.accessor_prefix is not None:
            return self.accessor_prefix
        if operation is Operation.EXTRACT:
            return DEFAULT_GETTER_PREFIX
        return DEFAULT_SETTER_PREFIX

    def merge(self, **overrides: Any) -> "ResolutionOptions":
        """Return a validated copy with ``overrides`` applied."""
        if not overrides:
            return self
        return self.model_validate({**self.model_dump(), **overrides})

    @classmethod
    def build(
        cls, options: Optional["ResolutionOptions"] = None, **overrides: Any
    ) -> "ResolutionOptions":
        return (options or cls()).merge(**overrides)
