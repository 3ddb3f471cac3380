"""Resource client backed by the checkout platform REST API."""

from typing import Any, Dict, List

from ..api.client import CheckoutClient
from ..api.exceptions import CheckoutAPIError
from ..models.resource import TENANT_FIELD, Resource, ResourceFilter
from ..utils.logging import get_logger
from .base import ResourceClient


class HttpResourceClient(ResourceClient):
    """Resource client for one collection endpoint, e.g. ``/products``."""

    def __init__(self, client: CheckoutClient, kind: str, endpoint: str, per_page: int = 100):
        """Initialize HTTP resource client.

        Args:
            client: Checkout platform API client
            kind: Resource kind served by the endpoint
            endpoint: Collection endpoint path
            per_page: Page size used when listing
        """
        self.client = client
        self.kind = kind
        self.endpoint = '/' + endpoint.strip('/')
        self.per_page = per_page
        self.logger = get_logger(__name__).bind(kind=kind)

    async def list(self, resource_filter: ResourceFilter) -> List[Resource]:
        records = await self.client.get_paginated_async(
            self.endpoint,
            params=resource_filter.as_params(),
            tenant_id=resource_filter.tenant_id,
            per_page=self.per_page,
        )
        resources = [
            Resource.from_record(self.kind, record, tenant_id=resource_filter.tenant_id)
            for record in records
        ]
        # Some endpoints ignore the owner parameter, so filter again locally
        return [resource for resource in resources if resource_filter.matches(resource)]

    async def create(self, payload: Dict[str, Any]) -> Resource:
        tenant_id = payload.get(TENANT_FIELD)
        response = await self.client.post_async(
            self.endpoint, data=payload, tenant_id=tenant_id
        )

        record = response.data
        if isinstance(record, dict) and isinstance(record.get('data'), dict):
            record = record['data']
        if not isinstance(record, dict):
            raise CheckoutAPIError(
                f'Unexpected create response for {self.kind}: {type(record).__name__}',
                status_code=response.status_code,
                tenant_id=tenant_id,
            )

        created = Resource.from_record(self.kind, record, tenant_id=tenant_id)
        self.logger.debug(f'Created {self.kind} {created.id} in tenant {created.tenant_id}')
        return created

    async def delete(self, resource_id: str) -> None:
        await self.client.delete_async(f'{self.endpoint}/{resource_id}')
        self.logger.debug(f'Deleted {self.kind} {resource_id}')

    def __repr__(self) -> str:
        return f'HttpResourceClient(kind={self.kind!r}, endpoint={self.endpoint!r})'

