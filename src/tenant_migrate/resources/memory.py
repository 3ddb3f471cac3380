"""
In-memory resource client.

Useful for testing and for rehearsing a migration against a seeded copy of
platform data. Nothing is persisted.
"""

import itertools
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..models.resource import TENANT_FIELD, Resource, ResourceFilter
from .base import ResourceClient


class InMemoryResourceClient(ResourceClient):
    """
    Dictionary-backed implementation of the resource client.

    Resources keep insertion order, so ``list`` is deterministic. Every call
    is appended to ``calls`` as ``(operation, argument)`` for assertions.

    Example:
        >>> products = InMemoryResourceClient('products')
        >>> products.seed([{'id': 'p1', 'tenant_id': 'T1', 'created_by': 'U1'}])
        >>> created = await products.create({'tenant_id': 'T2', 'name': 'Copy'})
    """

    def __init__(self, kind: str, id_prefix: Optional[str] = None):
        self.kind = kind
        self.id_prefix = id_prefix or kind
        self._resources: Dict[str, Resource] = {}
        self._ids = itertools.count(1)
        self.calls: List[Tuple[str, Any]] = []

    def seed(self, records: Iterable[Dict[str, Any]]) -> List[Resource]:
        """Insert raw records as-is, keeping their ids."""
        seeded = []
        for record in records:
            resource = Resource.from_record(self.kind, record)
            self._resources[resource.id] = resource
            seeded.append(resource)
        return seeded

    def all(self) -> List[Resource]:
        """Every stored resource regardless of tenant."""
        return list(self._resources.values())

    def _next_id(self) -> str:
        while True:
            candidate = f'{self.id_prefix}-{next(self._ids)}'
            if candidate not in self._resources:
                return candidate

    async def list(self, resource_filter: ResourceFilter) -> List[Resource]:
        self.calls.append(('list', resource_filter))
        return [r for r in self._resources.values() if resource_filter.matches(r)]

    async def create(self, payload: Dict[str, Any]) -> Resource:
        self.calls.append(('create', payload))
        if not payload.get(TENANT_FIELD):
            raise ValueError(f'{self.kind} payload has no {TENANT_FIELD}')

        record = dict(payload)
        record['id'] = self._next_id()
        resource = Resource.from_record(self.kind, record)
        self._resources[resource.id] = resource
        return resource

    async def delete(self, resource_id: str) -> None:
        self.calls.append(('delete', resource_id))
        if resource_id not in self._resources:
            raise KeyError(f'{self.kind} {resource_id} not found')
        del self._resources[resource_id]

    def count_calls(self, operation: str) -> int:
        """Number of recorded calls of one operation."""
        return sum(1 for name, _ in self.calls if name == operation)
