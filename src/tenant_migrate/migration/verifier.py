"""Verification of destination resource counts around plan execution."""

from typing import Iterable, Optional

from loguru import logger

from ..models.resource import ResourceFilter
from .models import (
    KindVerification,
    MigrationPlan,
    MigrationStatus,
    TenantSnapshot,
    VerificationResult,
)
from .registry import ResourceRegistry


class Verifier:
    """Compares destination growth with the number of migrated units.

    A mismatch is reported, never corrected. It usually means another actor
    wrote to the destination tenant during the run.
    """

    def __init__(self, registry: ResourceRegistry):
        self.registry = registry
        self.logger = logger.bind(component='Verifier')

    async def snapshot(
        self,
        tenant_id: str,
        kinds: Optional[Iterable[str]] = None,
        user_id: Optional[str] = None,
    ) -> TenantSnapshot:
        """Count resources per kind in a tenant.

        Args:
            tenant_id: Tenant to count
            kinds: Kinds to count, all registered kinds when omitted
            user_id: Only count resources created by this user

        Returns:
            Snapshot with per-kind counts and per-kind errors
        """
        snapshot = TenantSnapshot(tenant_id=tenant_id, user_id=user_id)
        resource_filter = ResourceFilter(tenant_id=tenant_id, owner_user_id=user_id)

        for kind in self.registry.resolve(kinds):
            try:
                resources = await self.registry.get(kind).list(resource_filter)
            except Exception as e:
                self.logger.warning(f'Failed to count {kind} in tenant {tenant_id}: {e}')
                snapshot.errors[kind] = str(e) or type(e).__name__
                continue
            snapshot.counts[kind] = len(resources)

        return snapshot

    def verify(
        self,
        destination_tenant_id: str,
        before: TenantSnapshot,
        after: TenantSnapshot,
        plan: MigrationPlan,
    ) -> VerificationResult:
        """Check the observed destination delta against migrated units.

        Args:
            destination_tenant_id: Tenant that received the copies
            before: Destination snapshot taken before execution
            after: Destination snapshot taken after execution
            plan: Executed plan

        Returns:
            Verification result, consistent only if every count was readable
            and every delta matches
        """
        kinds = {}
        for kind in list(before.counts) + list(before.errors):
            if kind in kinds:
                continue
            expected = sum(
                1 for unit in plan.units_for(kind) if unit.status == MigrationStatus.MIGRATED
            )
            count_before = before.counts.get(kind)
            count_after = after.counts.get(kind)
            observed = None
            if count_before is not None and count_after is not None:
                observed = count_after - count_before
            kinds[kind] = KindVerification(
                kind=kind,
                before=count_before,
                after=count_after,
                expected_delta=expected,
                observed_delta=observed,
                consistent=observed == expected,
            )

        expected_total = len(plan.migrated_units())
        observed_total = None
        if before.total is not None and after.total is not None:
            observed_total = after.total - before.total

        result = VerificationResult(
            destination_tenant_id=destination_tenant_id,
            before=before.total,
            after=after.total,
            expected_delta=expected_total,
            observed_delta=observed_total,
            consistent=observed_total == expected_total
            and all(k.consistent for k in kinds.values()),
            kinds=kinds,
        )

        if result.consistent:
            self.logger.info(
                f'Verification passed: +{expected_total} in tenant {destination_tenant_id}'
            )
        else:
            self.logger.warning(f'Verification mismatch: {result.mismatch.message}')

        return result
