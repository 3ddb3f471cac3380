"""Tests for resource models and resource clients."""

import pytest
from unittest.mock import AsyncMock, Mock

from tenant_migrate.api.client import APIResponse
from tenant_migrate.api.exceptions import CheckoutAPIError
from tenant_migrate.models.resource import Resource, ResourceFilter
from tenant_migrate.resources.http import HttpResourceClient
from tenant_migrate.resources.memory import InMemoryResourceClient

from conftest import product_record, run


class TestResource:
    """Test resource normalization and payload building."""

    def test_from_record(self):
        """Test a platform record is normalized."""
        resource = Resource.from_record('products', product_record('p1', 'Course A'))

        assert resource.id == 'p1'
        assert resource.kind == 'products'
        assert resource.tenant_id == 'T1'
        assert resource.owner_user_id == 'U1'
        assert resource.name == 'Course A'
        assert resource.attributes['price'] == 1000

    def test_from_record_mongo_id_and_tenant_fallback(self):
        """Test ``_id`` records and records without a tenant field."""
        resource = Resource.from_record(
            'products', {'_id': '507f1f77', 'name': 'X'}, tenant_id='T1'
        )

        assert resource.id == '507f1f77'
        assert resource.tenant_id == 'T1'
        assert resource.owner_user_id is None

    def test_from_record_without_id(self):
        """Test records without any id are rejected."""
        with pytest.raises(ValueError):
            Resource.from_record('products', {'name': 'X', 'tenant_id': 'T1'})

    def test_create_payload_strips_identity(self):
        """Test only tenant identity changes in the creation payload."""
        resource = Resource.from_record(
            'products', product_record('p1', 'Course A', _id='p1', createdAt='x')
        )

        payload = resource.to_create_payload('T2')

        for field in ('id', '_id', 'created_at', 'updated_at', 'createdAt'):
            assert field not in payload
        assert payload['tenant_id'] == 'T2'
        assert payload['name'] == 'Course A'
        assert payload['created_by'] == 'U1'
        assert payload['price'] == 1000
        assert payload['migrated_from'] == {'tenant_id': 'T1', 'resource_id': 'p1'}
        # The source record itself is untouched
        assert resource.attributes['tenant_id'] == 'T1'

    def test_create_payload_without_provenance(self):
        resource = Resource.from_record('products', product_record('p1', 'Course A'))

        payload = resource.to_create_payload('T2', track_provenance=False)

        assert 'migrated_from' not in payload

    def test_create_payload_drops_inherited_marker(self):
        """Test a copy being moved again does not keep its old marker."""
        copy = Resource.from_record(
            'products',
            product_record(
                'c1', 'Copy', tenant_id='T2',
                migrated_from={'tenant_id': 'T0', 'resource_id': 'p0'},
            ),
        )

        assert 'migrated_from' not in copy.to_create_payload('T3', track_provenance=False)
        assert copy.to_create_payload('T3')['migrated_from'] == {
            'tenant_id': 'T2',
            'resource_id': 'c1',
        }

    def test_migration_source(self):
        """Test provenance marker is read back from a copy."""
        copy = Resource.from_record(
            'products',
            product_record(
                'c1', 'Copy', tenant_id='T2',
                migrated_from={'tenant_id': 'T1', 'resource_id': 'p1'},
            ),
        )
        original = Resource.from_record('products', product_record('p1', 'Course A'))

        assert copy.migration_source == {'tenant_id': 'T1', 'resource_id': 'p1'}
        assert original.migration_source is None


class TestResourceFilter:
    """Test resource filters."""

    def test_params(self):
        assert ResourceFilter(tenant_id='T1', owner_user_id='U1').as_params() == {
            'tenant_id': 'T1',
            'created_by': 'U1',
        }
        assert ResourceFilter(tenant_id='T1').as_params() == {'tenant_id': 'T1'}

    def test_matches(self):
        resource = Resource.from_record('products', product_record('p1', 'A'))

        assert ResourceFilter(tenant_id='T1', owner_user_id='U1').matches(resource)
        assert ResourceFilter(tenant_id='T1').matches(resource)
        assert not ResourceFilter(tenant_id='T1', owner_user_id='U2').matches(resource)
        assert not ResourceFilter(tenant_id='T2').matches(resource)


class TestInMemoryResourceClient:
    """Test the in-memory resource client."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = InMemoryResourceClient('products')
        self.client.seed(
            [product_record('p1', 'A'), product_record('p2', 'B', owner='U2')]
        )

    def test_list_filters(self):
        result = run(self.client.list(ResourceFilter(tenant_id='T1', owner_user_id='U1')))

        assert [r.id for r in result] == ['p1']

    def test_create_assigns_new_id(self):
        created = run(self.client.create({'tenant_id': 'T2', 'name': 'Copy'}))

        assert created.id == 'products-1'
        assert created.tenant_id == 'T2'
        assert len(self.client.all()) == 3

    def test_create_requires_tenant(self):
        with pytest.raises(ValueError):
            run(self.client.create({'name': 'No tenant'}))

    def test_delete(self):
        run(self.client.delete('p1'))

        assert [r.id for r in self.client.all()] == ['p2']
        with pytest.raises(KeyError):
            run(self.client.delete('p1'))
        assert self.client.count_calls('delete') == 2


class TestHttpResourceClient:
    """Test the REST-backed resource client."""

    def setup_method(self):
        """Set up test fixtures."""
        self.api = Mock()
        self.client = HttpResourceClient(self.api, 'products', 'products/')

    def test_list(self):
        """Test listing sends the tenant and owner filter."""
        self.api.get_paginated_async = AsyncMock(
            return_value=[
                {'_id': 'p1', 'name': 'A', 'created_by': 'U1'},
                {'_id': 'p2', 'name': 'B', 'created_by': 'U2'},
            ]
        )

        result = run(self.client.list(ResourceFilter(tenant_id='T1', owner_user_id='U1')))

        assert [r.id for r in result] == ['p1']
        assert result[0].tenant_id == 'T1'
        self.api.get_paginated_async.assert_awaited_once_with(
            '/products',
            params={'tenant_id': 'T1', 'created_by': 'U1'},
            tenant_id='T1',
            per_page=100,
        )

    def test_create(self):
        """Test creation posts into the payload's tenant."""
        self.api.post_async = AsyncMock(
            return_value=APIResponse(
                status_code=201,
                data={'data': {'id': 'n1', 'tenant_id': 'T2', 'name': 'A'}},
                headers={},
                success=True,
            )
        )

        created = run(self.client.create({'tenant_id': 'T2', 'name': 'A'}))

        assert created.id == 'n1'
        assert created.tenant_id == 'T2'
        self.api.post_async.assert_awaited_once_with(
            '/products', data={'tenant_id': 'T2', 'name': 'A'}, tenant_id='T2'
        )

    def test_create_unexpected_response(self):
        self.api.post_async = AsyncMock(
            return_value=APIResponse(status_code=201, data=None, headers={}, success=True)
        )

        with pytest.raises(CheckoutAPIError):
            run(self.client.create({'tenant_id': 'T2', 'name': 'A'}))

    def test_delete(self):
        self.api.delete_async = AsyncMock(
            return_value=APIResponse(status_code=204, data=None, headers={}, success=True)
        )

        run(self.client.delete('p1'))

        self.api.delete_async.assert_awaited_once_with('/products/p1')
