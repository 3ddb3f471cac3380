"""Resource entity models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

# Field names used by the checkout platform on every tenant-scoped record
TENANT_FIELD = 'tenant_id'
OWNER_FIELD = 'created_by'
ID_FIELDS = ('id', '_id')

# Tenant-scoped identity assigned by the platform; never carried across tenants
IDENTITY_FIELDS = ('id', '_id', 'created_at', 'updated_at', 'createdAt', 'updatedAt')

# Provenance marker written on destination copies
MIGRATION_MARKER_FIELD = 'migrated_from'


class ResourceFilter(BaseModel):
    """Filter accepted by ``ResourceClient.list``.

    ``owner_user_id=None`` matches resources of every owner in the tenant.
    """

    tenant_id: str = Field(..., description='Tenant to list')
    owner_user_id: Optional[str] = Field(
        default=None, description='Only resources created by this user'
    )

    def as_params(self) -> Dict[str, str]:
        """Query parameters for the platform list endpoints."""
        params = {TENANT_FIELD: self.tenant_id}
        if self.owner_user_id is not None:
            params[OWNER_FIELD] = self.owner_user_id
        return params

    def matches(self, resource: 'Resource') -> bool:
        """Check whether a resource satisfies the filter."""
        if resource.tenant_id != self.tenant_id:
            return False
        return self.owner_user_id is None or resource.owner_user_id == self.owner_user_id


class Resource(BaseModel):
    """A tenant-scoped record on the checkout platform."""

    id: str = Field(..., description='Identifier assigned by the owning tenant')
    kind: str = Field(..., description='Resource kind, e.g. products')
    tenant_id: str = Field(..., description='Tenant the resource belongs to')
    owner_user_id: Optional[str] = Field(
        default=None, description='User that created the resource'
    )
    attributes: Dict[str, Any] = Field(
        default_factory=dict, description='Full record as returned by the platform'
    )

    @field_validator('id', 'tenant_id')
    @classmethod
    def validate_not_empty(cls, v):
        """Identifiers must be non-empty."""
        if not str(v).strip():
            raise ValueError('Identifier must not be empty')
        return str(v)

    @property
    def name(self) -> str:
        """Human readable label for reports and logs."""
        return str(self.attributes.get('name') or self.attributes.get('title') or self.id)

    @property
    def migration_source(self) -> Optional[Dict[str, str]]:
        """Provenance marker if this resource is a migrated copy."""
        marker = self.attributes.get(MIGRATION_MARKER_FIELD)
        if isinstance(marker, dict) and marker.get('resource_id'):
            return marker
        return None

    @classmethod
    def from_record(
        cls, kind: str, record: Dict[str, Any], tenant_id: Optional[str] = None
    ) -> 'Resource':
        """Build a resource from a raw platform record.

        Args:
            kind: Resource kind
            record: Raw record
            tenant_id: Tenant the record was read from, used when the record
                omits its own tenant

        Returns:
            Resource
        """
        resource_id = next(
            (record[field] for field in ID_FIELDS if record.get(field)), None
        )
        if resource_id is None:
            raise ValueError(f'{kind} record has no id')

        owner = record.get(OWNER_FIELD)
        return cls(
            id=str(resource_id),
            kind=kind,
            tenant_id=str(record.get(TENANT_FIELD) or tenant_id or ''),
            owner_user_id=str(owner) if owner is not None else None,
            attributes=dict(record),
        )

    def to_create_payload(
        self, destination_tenant_id: str, track_provenance: bool = True
    ) -> Dict[str, Any]:
        """Build the payload that recreates this resource in another tenant.

        Identity fields are stripped and ``tenant_id`` is rewritten; the rest of
        the record is passed through unchanged.
        """
        payload = {
            key: value
            for key, value in self.attributes.items()
            if key not in IDENTITY_FIELDS
        }
        payload[TENANT_FIELD] = destination_tenant_id
        # A source that is itself a copy must not pass its marker on
        payload.pop(MIGRATION_MARKER_FIELD, None)
        if track_provenance:
            payload[MIGRATION_MARKER_FIELD] = {
                'tenant_id': self.tenant_id,
                'resource_id': self.id,
            }
        return payload
