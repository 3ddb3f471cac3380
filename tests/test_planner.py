"""Tests for migration planning."""

import pytest
from pydantic import ValidationError

from tenant_migrate.migration.models import (
    DetectionError,
    MigratedIndex,
    MigrationStatus,
    OrphanReport,
)
from tenant_migrate.migration.planner import MigrationPlanner
from tenant_migrate.models.resource import Resource

from conftest import product_record


def _orphans():
    return OrphanReport(
        user_id='U1',
        source_tenant_id='T1',
        candidates={
            'products': [
                Resource.from_record('products', product_record('p2', 'B')),
                Resource.from_record('products', product_record('p1', 'A')),
            ],
            'customers': [
                Resource.from_record(
                    'customers', {'id': 'c1', 'tenant_id': 'T1', 'created_by': 'U1'}
                ),
            ],
        },
    )


class TestMigrationPlanner:
    """Test migration planner."""

    def setup_method(self):
        """Set up test fixtures."""
        self.planner = MigrationPlanner()

    def test_plan_order(self):
        """Test kinds keep detection order and resources keep list order."""
        plan = self.planner.plan(_orphans(), 'T2')

        assert [(u.kind, u.source_id) for u in plan.units] == [
            ('products', 'p2'),
            ('products', 'p1'),
            ('customers', 'c1'),
        ]
        assert plan.kinds == ['products', 'customers']
        assert plan.found == {'products': 2, 'customers': 1}
        assert all(u.status == MigrationStatus.PENDING for u in plan.units)
        assert plan.destination_tenant_id == 'T2'
        assert plan.source_tenant_id == 'T1'

    def test_plan_is_deterministic(self):
        """Test identical detector output yields identical plans."""
        orphans = _orphans()

        first = self.planner.plan(orphans, 'T2')
        second = self.planner.plan(orphans, 'T2')

        assert [(u.kind, u.source_id) for u in first.units] == [
            (u.kind, u.source_id) for u in second.units
        ]
        assert first.units[0] is not second.units[0]

    def test_plan_is_immutable(self):
        plan = self.planner.plan(_orphans(), 'T2')

        with pytest.raises(ValidationError):
            plan.destination_tenant_id = 'T3'

    def test_already_migrated_skipped(self):
        """Test resources with a destination copy get no unit."""
        index = MigratedIndex(destination_tenant_id='T2', source_ids={'products': {'p1'}})

        plan = self.planner.plan(_orphans(), 'T2', index)

        assert [u.source_id for u in plan.units_for('products')] == ['p2']
        assert plan.skipped == {'products': ['p1']}
        assert plan.found['products'] == 2

    def test_unreadable_destination_blocks_kind(self):
        """Test a kind whose destination scan failed is not planned."""
        index = MigratedIndex(
            destination_tenant_id='T2',
            errors=[DetectionError(kind='products', tenant_id='T2', message='timeout')],
        )

        plan = self.planner.plan(_orphans(), 'T2', index)

        assert plan.kinds == ['customers']
        assert plan.units_for('products') == []
        assert plan.found['products'] == 2
        assert [e.kind for e in plan.detection_errors] == ['products']

    def test_selected_ids(self):
        """Test only requested ids are planned and unknown ones are reported."""
        plan = self.planner.plan(
            _orphans(), 'T2', resource_ids={'products': ['p1', 'p404', 'p1']}
        )

        assert [u.source_id for u in plan.units] == ['p1']
        assert plan.found == {'products': 1}
        assert plan.unmatched == {'products': ['p404']}
        assert plan.kinds == ['products']

    def test_selected_ids_for_kind_without_candidates(self):
        plan = self.planner.plan(_orphans(), 'T2', resource_ids={'orders': ['o1']})

        assert plan.units == ()
        assert plan.unmatched == {'orders': ['o1']}

    def test_empty_report(self):
        plan = self.planner.plan(OrphanReport(user_id='U1', source_tenant_id='T1'), 'T2')

        assert plan.units == ()
        assert plan.kinds == []
