"""Shared fixtures and test doubles."""

import asyncio

import pytest

from tenant_migrate.migration.registry import ResourceRegistry
from tenant_migrate.models.resource import Resource, ResourceFilter
from tenant_migrate.resources.memory import InMemoryResourceClient


class FlakyResourceClient(InMemoryResourceClient):
    """In-memory client with injectable per-call failures."""

    def __init__(self, kind, fail_create_names=(), fail_delete_ids=(), fail_list_tenants=()):
        super().__init__(kind)
        # Fields the platform rewrites on create, e.g. the owner
        self.create_overrides = {}
        self.fail_create_names = set(fail_create_names)
        self.fail_delete_ids = set(fail_delete_ids)
        self.fail_list_tenants = set(fail_list_tenants)

    async def list(self, resource_filter: ResourceFilter):
        if resource_filter.tenant_id in self.fail_list_tenants:
            self.calls.append(('list', resource_filter))
            raise ConnectionError('connection reset by peer')
        return await super().list(resource_filter)

    async def create(self, payload) -> Resource:
        if payload.get('name') in self.fail_create_names:
            self.calls.append(('create', payload))
            raise TimeoutError('simulated transport error')
        return await super().create({**payload, **self.create_overrides})

    async def delete(self, resource_id: str) -> None:
        if resource_id in self.fail_delete_ids:
            self.calls.append(('delete', resource_id))
            raise ConnectionError('delete refused')
        await super().delete(resource_id)


def product_record(resource_id, name, tenant_id='T1', owner='U1', **extra):
    record = {
        'id': resource_id,
        'name': name,
        'tenant_id': tenant_id,
        'created_by': owner,
        'price': 1000,
        'created_at': '2025-09-18T16:32:03Z',
        'updated_at': '2025-09-18T16:32:03Z',
    }
    record.update(extra)
    return record


def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


@pytest.fixture
def products():
    client = FlakyResourceClient('products')
    client.seed(
        [
            product_record('p1', 'Course A'),
            product_record('p2', 'Course B'),
            product_record('p3', 'Other user', owner='U2'),
            product_record('p4', 'Existing in T2', tenant_id='T2', owner='U9'),
        ]
    )
    return client


@pytest.fixture
def customers():
    return FlakyResourceClient('customers')


@pytest.fixture
def registry(products, customers):
    return ResourceRegistry({'products': products, 'customers': customers})
