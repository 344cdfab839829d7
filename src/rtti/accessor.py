from __future__ import annotations

import inspect
import logging
import sys
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Set,
    Tuple,
    Type,
    get_origin,
)

from pydantic import BaseModel

from rtti.naming import AccessorNameResolver
from rtti.options import (
    DEFAULT_GETTER_PREFIX,
    DEFAULT_SETTER_PREFIX,
    Operation,
    ResolutionOptions,
    Visibility,
)

logger = logging.getLogger(__name__)

AttributeMap = Dict[str, Any]
DeclaredMember = Tuple[str, str, Visibility]


class IntrospectionError(TypeError):
    """Raised when a value cannot be reflected upon at all."""


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

BUILTIN_VALUE_TYPES: Tuple[type, ...] = (
    str,
    bytes,
    bytearray,
    memoryview,
    int,
    float,
    complex,
    list,
    tuple,
    set,
    frozenset,
    dict,
    range,
    slice,
)


def is_builtin_value(value: Any) -> bool:
    """True for built-in values and containers, subclasses included."""
    return isinstance(value, BUILTIN_VALUE_TYPES) or type(value) is object


def is_domain_object(value: Any) -> bool:
    """True for instances of types defined outside builtins and the stdlib."""
    if value is None or isinstance(value, (type, Enum)) or is_builtin_value(value):
        return False
    if inspect.ismodule(value) or inspect.isroutine(value):
        return False
    package = type(value).__module__.partition(".")[0]
    return package != "builtins" and package not in sys.stdlib_module_names


@dataclass(frozen=True)
class AttributeDescriptor:
    name: str
    visibility: Visibility
    depth: int
    field_name: str


class PopoAdapter:
    roots: ClassVar[Tuple[type, ...]] = (object,)
    interfaces: ClassVar[Tuple[type, ...]] = (ABC, Generic, Protocol)

    def ensure_introspectable(self, obj: Any) -> None:
        if isinstance(obj, type):
            raise IntrospectionError(
                f"Expected an object instance, got class {obj.__name__}"
            )
        if inspect.ismodule(obj) or inspect.isroutine(obj):
            raise IntrospectionError(
                f"Expected an object instance, got {type(obj).__name__}"
            )
        if is_builtin_value(obj):
            raise IntrospectionError(
                f"Expected an object instance, got built-in {type(obj).__name__}"
            )

    def levels(self, obj: Any) -> Iterator[type]:
        for cls in type(obj).__mro__:
            if self.is_root(cls) or self.is_interface(cls):
                continue
            yield cls

    def is_root(self, cls: type) -> bool:
        return cls in self.roots

    def is_interface(self, cls: type) -> bool:
        return cls in self.interfaces or bool(cls.__dict__.get("_is_protocol"))

    def declared_members(self, cls: type) -> List[DeclaredMember]:
        members: List[DeclaredMember] = []
        seen: Set[str] = set()
        for field_name in self._declared_field_names(cls):
            if field_name in seen:
                continue
            seen.add(field_name)
            parsed = self._parse_member_name(cls, field_name)
            if parsed is not None:
                members.append((field_name, *parsed))
        return members

    def instance_fields(self, obj: Any) -> Dict[str, Any]:
        return {
            name: value
            for name, value in getattr(obj, "__dict__", {}).items()
            if not name.startswith("_")
        }

    def has_public_callable(self, obj: Any, name: str) -> bool:
        if name.startswith("_"):
            return False
        if inspect.getattr_static(obj, name, MISSING) is MISSING:
            return False
        return callable(getattr(obj, name, None))

    def has_static_member(self, obj: Any, name: str) -> bool:
        return inspect.getattr_static(obj, name, MISSING) is not MISSING

    def invoke(self, obj: Any, name: str, *args: Any) -> Any:
        return getattr(obj, name)(*args)

    def invoke_if_present(self, obj: Any, name: str, *args: Any) -> Any:
        """Call ``name`` if the object can produce it, possibly via ``__getattr__``.

        Returns ``MISSING`` when no such callable can be obtained.
        """
        try:
            method = getattr(obj, name)
        except AttributeError:
            return MISSING
        if not callable(method):
            return MISSING
        return method(*args)

    def read_field(self, obj: Any, field_name: str) -> Any:
        return getattr(obj, field_name)

    def write_field(self, obj: Any, field_name: str, value: Any) -> None:
        setattr(obj, field_name, value)

    # region Private methods
    # These methods are not intended to be used outside of this class.

    def _declared_field_names(self, cls: type) -> List[str]:
        names = [
            name
            for name, hint in inspect.get_annotations(cls).items()
            if not self._is_class_var(hint)
        ]
        names.extend(self._slot_names(cls))
        return names

    def _slot_names(self, cls: type) -> List[str]:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        names = []
        for slot in slots:
            if slot in ("__dict__", "__weakref__"):
                continue
            if slot.startswith("__") and not slot.endswith("__"):
                slot = f"_{cls.__name__.lstrip('_')}{slot}"
            names.append(slot)
        return names

    @staticmethod
    def _is_class_var(hint: Any) -> bool:
        if isinstance(hint, str):
            return hint.split("[", 1)[0].rsplit(".", 1)[-1] == "ClassVar"
        return hint is ClassVar or get_origin(hint) is ClassVar

    @staticmethod
    def _parse_member_name(
        cls: type, field_name: str
    ) -> Optional[Tuple[str, Visibility]]:
        if field_name.startswith("__") and field_name.endswith("__"):
            return None
        mangled_prefix = f"_{cls.__name__.lstrip('_')}__"
        if field_name.startswith(mangled_prefix):
            return field_name[len(mangled_prefix) :], Visibility.PRIVATE
        if field_name.startswith("_"):
            return field_name.lstrip("_"), Visibility.PROTECTED
        return field_name, Visibility.PUBLIC

    # endregion


class PydanticModelAdapter(PopoAdapter):
    def __init__(self, BaseModel: Type) -> None:
        self.BaseModel = BaseModel

    def is_root(self, cls: type) -> bool:
        return super().is_root(cls) or cls is self.BaseModel

    def instance_fields(self, obj: Any) -> Dict[str, Any]:
        fields = super().instance_fields(obj)
        fields.update(obj.model_extra or {})
        return fields

    def _declared_field_names(self, cls: type) -> List[str]:
        if not issubclass(cls, self.BaseModel):
            return super()._declared_field_names(cls)
        known = set(cls.model_fields) | set(cls.__private_attributes__)
        return [name for name in inspect.get_annotations(cls) if name in known]


class HierarchyWalker:
    """Enumerates the attributes of an object, most-derived class first."""

    def __init__(self, adapter: PopoAdapter) -> None:
        self.adapter = adapter

    def levels(self, obj: Any) -> Iterator[type]:
        return self.adapter.levels(obj)

    def walk(
        self, obj: Any, visibility: FrozenSet[Visibility]
    ) -> Iterator[AttributeDescriptor]:
        for depth, cls in enumerate(self.levels(obj)):
            descriptors = [
                AttributeDescriptor(name, member_visibility, depth, field_name)
                for field_name, name, member_visibility in self.adapter.declared_members(
                    cls
                )
                if member_visibility in visibility
            ]
            if not descriptors:
                # Nothing declared here; fall back to what lives on the instance.
                descriptors = [
                    AttributeDescriptor(name, Visibility.PUBLIC, depth, name)
                    for name in self.adapter.instance_fields(obj)
                ]
            yield from descriptors


class AttributeAccessor:
    """Reads and writes named attributes of arbitrary objects.

    Public attributes are accessed directly. Protected (``_name``) and private
    (``__name``) attributes go through accessor methods named after them, e.g.
    ``getName`` and ``setName``. Failures on individual attributes are logged
    and skipped.
    """

    def get_adapter(self, obj: Any) -> PopoAdapter:
        if isinstance(obj, BaseModel):
            return PydanticModelAdapter(BaseModel)
        return PopoAdapter()

    def extract(
        self,
        obj: Any,
        options: Optional[ResolutionOptions] = None,
        **overrides: Any,
    ) -> AttributeMap:
        """Extract attribute names and values from ``obj``.

        Args:
            obj: Object to read from. ``None`` yields an empty map.
            options: Resolution options, see ``ResolutionOptions``.
            **overrides: Option fields overriding ``options``.

        Raises:
            IntrospectionError: If ``obj`` is not an introspectable instance.
        """
        options = ResolutionOptions.build(options, **overrides)
        if obj is None:
            return {}
        adapter = self.get_adapter(obj)
        adapter.ensure_introspectable(obj)
        prefix = options.prefix_for(Operation.EXTRACT)
        resolver = AccessorNameResolver(options.use_conventional_casing)

        attributes: AttributeMap = {}
        for descriptor in HierarchyWalker(adapter).walk(obj, options.visibility):
            if descriptor.name in attributes:
                continue
            value = self._read(adapter, resolver, prefix, obj, descriptor)
            if value is not MISSING:
                attributes[descriptor.name] = value

        if options.recurse_into_nested_objects:
            nested_options = options.merge(
                accessor_prefix=prefix, recurse_into_nested_objects=False
            )
            for name, value in list(attributes.items()):
                if is_domain_object(value):
                    attributes[name] = self.extract(value, nested_options)
        return attributes

    def inject(
        self,
        mapping: Mapping[str, Any],
        obj: Any,
        options: Optional[ResolutionOptions] = None,
        **overrides: Any,
    ) -> None:
        """Apply the values of ``mapping`` to the matching attributes of ``obj``.

        Keys absent from ``mapping`` leave their attributes untouched.

        Raises:
            IntrospectionError: If ``mapping`` is not a mapping or ``obj`` is
                not an introspectable instance.
        """
        options = ResolutionOptions.build(options, **overrides)
        if not isinstance(mapping, Mapping):
            raise IntrospectionError(
                f"Expected a mapping of attribute values, got {type(mapping).__name__}"
            )
        if obj is None:
            raise IntrospectionError("Cannot inject attributes into None")
        adapter = self.get_adapter(obj)
        adapter.ensure_introspectable(obj)
        prefix = options.prefix_for(Operation.INJECT)
        resolver = AccessorNameResolver(options.use_conventional_casing)

        applied: Set[str] = set()
        for descriptor in HierarchyWalker(adapter).walk(obj, options.visibility):
            if descriptor.name not in mapping or descriptor.name in applied:
                continue
            if self._write(
                adapter, resolver, prefix, obj, descriptor, mapping[descriptor.name]
            ):
                applied.add(descriptor.name)

    # region Private methods
    # These methods are not intended to be used outside of this class.

    def _read(
        self,
        adapter: PopoAdapter,
        resolver: AccessorNameResolver,
        prefix: str,
        obj: Any,
        descriptor: AttributeDescriptor,
    ) -> Any:
        try:
            if not descriptor.visibility.is_restricted:
                return adapter.read_field(obj, descriptor.field_name)
            method_name = resolver.resolve(prefix, descriptor.name)
            if adapter.has_public_callable(obj, method_name):
                return adapter.invoke(obj, method_name)
            if adapter.has_static_member(obj, method_name):
                self._log_skip(
                    obj, descriptor, f"{method_name} is not a public callable"
                )
                return MISSING
            value = adapter.invoke_if_present(obj, method_name)
            if value is MISSING:
                self._log_skip(obj, descriptor, f"no accessor {method_name}")
            return value
        except Exception as e:
            self._log_skip(obj, descriptor, e)
            return MISSING

    def _write(
        self,
        adapter: PopoAdapter,
        resolver: AccessorNameResolver,
        prefix: str,
        obj: Any,
        descriptor: AttributeDescriptor,
        value: Any,
    ) -> bool:
        try:
            if not descriptor.visibility.is_restricted:
                adapter.write_field(obj, descriptor.field_name, value)
                return True
            method_name = resolver.resolve(prefix, descriptor.name)
            if not adapter.has_public_callable(obj, method_name):
                self._log_skip(obj, descriptor, f"no public mutator {method_name}")
                return False
            adapter.invoke(obj, method_name, value)
            return True
        except Exception as e:
            self._log_skip(obj, descriptor, e)
            return False

    @staticmethod
    def _log_skip(obj: Any, descriptor: AttributeDescriptor, reason: Any) -> None:
        logger.debug(
            "Skipping %s attribute %r of %s: %s",
            descriptor.visibility.value,
            descriptor.name,
            type(obj).__name__,
            reason,
        )

    # endregion


default_accessor = AttributeAccessor()


def extract_attributes(
    obj: Any, options: Optional[ResolutionOptions] = None, **overrides: Any
) -> AttributeMap:
    return default_accessor.extract(obj, options, **overrides)


def inject_attributes(
    mapping: Mapping[str, Any],
    obj: Any,
    options: Optional[ResolutionOptions] = None,
    **overrides: Any,
) -> None:
    default_accessor.inject(mapping, obj, options, **overrides)


def extract_private_attributes(
    obj: Any,
    accessor_prefix: str = DEFAULT_GETTER_PREFIX,
    use_conventional_casing: bool = True,
) -> AttributeMap:
    """Extract only private attributes, kept for callers of the older API."""
    return default_accessor.extract(
        obj,
        visibility=Visibility.PRIVATE,
        accessor_prefix=accessor_prefix,
        use_conventional_casing=use_conventional_casing,
    )


def inject_private_attributes(
    mapping: Mapping[str, Any],
    obj: Any,
    accessor_prefix: str = DEFAULT_SETTER_PREFIX,
    use_conventional_casing: bool = True,
) -> None:
    default_accessor.inject(
        mapping,
        obj,
        visibility=Visibility.PRIVATE,
        accessor_prefix=accessor_prefix,
        use_conventional_casing=use_conventional_casing,
    )
