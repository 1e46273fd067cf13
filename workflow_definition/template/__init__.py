"""Property placeholder resolution for workflow markup."""

from workflow_definition.template.property_source import PropertySource
from workflow_definition.template.resolver import (
    PropertyReference,
    PropertyResolver,
    resolve_markup_properties,
)

__all__ = [
    "PropertyReference",
    "PropertyResolver",
    "PropertySource",
    "resolve_markup_properties",
]
