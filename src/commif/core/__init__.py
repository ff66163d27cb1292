"""commif core: data model, parsers, interface synthesis and flattening.

This package is standalone and must not import io/bundle/cli to avoid circular
dependencies.
"""

from __future__ import annotations

from .build import BuildOptions, TopicConflictError, UnsupportedKindError, build_interface, surface_type_name
from .model import (
    Causality,
    Direction,
    EnumDefinition,
    FlattenedMember,
    FlattenedStructDefinition,
    InterfaceDescription,
    ScalarKind,
    StructDefinition,
    Topic,
    VariableDescriptor,
)
from .names import ParseError, StructuredName, parse_structured_name
from .resolve import StructCycleError, StructDefinitionResolver, UnknownStructError
from .tables import (
    TABLE_COLUMN_ORDER,
    TABLE_KEYS,
    TABLE_SCHEMAS,
    flattened_members_table,
    interface_to_tables,
    normalize_table,
    normalize_tables,
    tables_to_interface,
)
from .types import PrimitiveKind, TypeDescriptor, TypeDescriptorError, canonicalize_type_name, parse_type_descriptor
from .validate import TableValidationError, TypeReferenceError, Violation, validate_tables, validate_type_references

__all__ = [
    "BuildOptions",
    "Causality",
    "Direction",
    "EnumDefinition",
    "FlattenedMember",
    "FlattenedStructDefinition",
    "InterfaceDescription",
    "ParseError",
    "PrimitiveKind",
    "ScalarKind",
    "StructCycleError",
    "StructDefinition",
    "StructDefinitionResolver",
    "StructuredName",
    "Topic",
    "TopicConflictError",
    "TypeDescriptor",
    "TypeDescriptorError",
    "UnknownStructError",
    "UnsupportedKindError",
    "VariableDescriptor",
    "build_interface",
    "canonicalize_type_name",
    "parse_structured_name",
    "parse_type_descriptor",
    "surface_type_name",
    "TABLE_SCHEMAS",
    "TABLE_KEYS",
    "TABLE_COLUMN_ORDER",
    "flattened_members_table",
    "interface_to_tables",
    "normalize_table",
    "normalize_tables",
    "tables_to_interface",
    "TableValidationError",
    "TypeReferenceError",
    "Violation",
    "validate_tables",
    "validate_type_references",
]
