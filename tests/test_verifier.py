"""Tests for destination verification."""

from tenant_migrate.migration.models import (
    MigrationPlan,
    MigrationUnit,
    TenantSnapshot,
)
from tenant_migrate.migration.verifier import Verifier
from tenant_migrate.models.resource import Resource

from conftest import product_record, run


def _plan_with_outcomes(migrated=3, failed=1):
    units = []
    for index in range(migrated + failed):
        resource = Resource.from_record(
            'products', product_record(f'p{index}', f'Product {index}')
        )
        unit = MigrationUnit(kind='products', source_id=resource.id, source=resource)
        if index < migrated:
            unit.mark_migrated(f'n{index}')
        else:
            unit.mark_failed('simulated transport error')
        units.append(unit)

    return MigrationPlan(
        user_id='U1',
        source_tenant_id='T1',
        destination_tenant_id='T2',
        units=tuple(units),
        found={'products': migrated + failed},
    )


class TestVerifier:
    """Test verifier."""

    def test_consistent_delta(self, registry):
        """Test before=2, three migrated, one failed, after=5 is consistent."""
        plan = _plan_with_outcomes(migrated=3, failed=1)
        before = TenantSnapshot(tenant_id='T2', counts={'products': 2})
        after = TenantSnapshot(tenant_id='T2', counts={'products': 5})

        result = Verifier(registry).verify('T2', before, after, plan)

        assert result.expected_delta == 3
        assert result.observed_delta == 3
        assert result.consistent is True
        assert result.mismatch is None
        assert result.kinds['products'].consistent is True

    def test_mismatch_reported(self, registry):
        """Test drift is reported, not corrected."""
        plan = _plan_with_outcomes(migrated=3, failed=1)
        before = TenantSnapshot(tenant_id='T2', counts={'products': 2})
        after = TenantSnapshot(tenant_id='T2', counts={'products': 7})

        result = Verifier(registry).verify('T2', before, after, plan)

        assert result.consistent is False
        assert result.observed_delta == 5
        assert result.mismatch.expected_delta == 3
        assert result.mismatch.observed_delta == 5
        assert '+3' in result.mismatch.message

    def test_unreadable_count_is_inconsistent(self, registry):
        plan = _plan_with_outcomes(migrated=1, failed=0)
        before = TenantSnapshot(tenant_id='T2', counts={'products': 2})
        after = TenantSnapshot(tenant_id='T2', errors={'products': 'timeout'})

        result = Verifier(registry).verify('T2', before, after, plan)

        assert result.consistent is False
        assert result.observed_delta is None
        assert 'could not be read' in result.mismatch.message

    def test_snapshot(self, registry, products):
        """Test snapshot counts every owner unless a user is given."""
        snapshot = run(Verifier(registry).snapshot('T1'))

        assert snapshot.counts == {'products': 3, 'customers': 0}
        assert snapshot.total == 3
        assert snapshot.complete

        own = run(Verifier(registry).snapshot('T1', ['products'], user_id='U1'))
        assert own.counts == {'products': 2}

    def test_snapshot_errors(self, registry, products):
        products.fail_list_tenants.add('T2')

        snapshot = run(Verifier(registry).snapshot('T2'))

        assert 'products' in snapshot.errors
        assert snapshot.counts == {'customers': 0}
        assert snapshot.total is None
