"""Resource client capability consumed by the migration engine."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..models.resource import Resource, ResourceFilter


class ResourceClient(ABC):
    """List/create/delete access to one resource kind.

    Any exception raised by these methods is treated by the engine as a
    failure of that single call.
    """

    kind: str

    @abstractmethod
    async def list(self, resource_filter: ResourceFilter) -> List[Resource]:
        """List resources matching the filter.

        Args:
            resource_filter: Tenant and optional owner to match

        Returns:
            Matching resources in platform order
        """
        pass

    @abstractmethod
    async def create(self, payload: Dict[str, Any]) -> Resource:
        """Create a resource from a payload.

        Args:
            payload: Record to create; its ``tenant_id`` selects the tenant

        Returns:
            The created resource with its newly assigned id
        """
        pass

    @abstractmethod
    async def delete(self, resource_id: str) -> None:
        """Delete a resource by id."""
        pass
