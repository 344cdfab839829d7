from rtti.accessor import (
    MISSING,
    AttributeAccessor,
    AttributeDescriptor,
    HierarchyWalker,
    IntrospectionError,
    PopoAdapter,
    PydanticModelAdapter,
    extract_attributes,
    extract_private_attributes,
    inject_attributes,
    inject_private_attributes,
)
from rtti.naming import AccessorNameResolver, resolve_accessor_name, ucfirst
from rtti.options import ANY_VISIBILITY, ResolutionOptions, Visibility

__all__ = [
    "ANY_VISIBILITY",
    "MISSING",
    "AccessorNameResolver",
    "AttributeAccessor",
    "AttributeDescriptor",
    "HierarchyWalker",
    "IntrospectionError",
    "PopoAdapter",
    "PydanticModelAdapter",
    "ResolutionOptions",
    "Visibility",
    "extract_attributes",
    "extract_private_attributes",
    "inject_attributes",
    "inject_private_attributes",
    "resolve_accessor_name",
    "ucfirst",
]
