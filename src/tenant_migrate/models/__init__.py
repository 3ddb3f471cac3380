"""Data models for checkout platform resources."""

from .resource import (
    IDENTITY_FIELDS,
    MIGRATION_MARKER_FIELD,
    OWNER_FIELD,
    TENANT_FIELD,
    Resource,
    ResourceFilter,
)

__all__ = [
    'IDENTITY_FIELDS',
    'MIGRATION_MARKER_FIELD',
    'OWNER_FIELD',
    'TENANT_FIELD',
    'Resource',
    'ResourceFilter',
]
