"""Execution of migration plans against resource clients."""

import asyncio
from datetime import datetime

from loguru import logger

from ..resources.base import ResourceClient
from .models import MigrationPlan, MigrationReport, MigrationStatus, MigrationUnit
from .registry import ResourceRegistry


class MigrationExecutor:
    """Recreates planned resources in the destination tenant.

    Every unit is attempted once. A failed create marks that unit as failed
    and the batch continues; nothing is retried here, a re-run is the retry.
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        track_provenance: bool = True,
        concurrent_kinds: bool = False,
    ):
        """Initialize migration executor.

        Args:
            registry: Resource kinds and their clients
            track_provenance: Write the ``migrated_from`` marker on copies
            concurrent_kinds: Run kinds concurrently instead of one after another
        """
        self.registry = registry
        self.track_provenance = track_provenance
        self.concurrent_kinds = concurrent_kinds
        self.logger = logger.bind(component='MigrationExecutor')
        self._cancel_requested = False

    def cancel(self) -> None:
        """Stop before the next unit starts; the unit in flight completes."""
        self._cancel_requested = True

    def reset(self) -> None:
        self._cancel_requested = False

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    async def execute(self, plan: MigrationPlan) -> MigrationReport:
        """Execute a migration plan.

        Args:
            plan: Plan produced by the planner

        Returns:
            Report of the attempted units
        """
        started_at = datetime.now()
        kinds = plan.kinds
        self.logger.info(
            f'Executing plan: {len(plan.units)} units across {len(kinds)} kinds '
            f'into tenant {plan.destination_tenant_id}'
        )

        # Resolve every client up front so an unknown kind fails before any create
        clients = {kind: self.registry.get(kind) for kind in kinds}

        if self.concurrent_kinds and len(kinds) > 1:
            await asyncio.gather(
                *(self._execute_kind(plan, kind, clients[kind]) for kind in kinds)
            )
        else:
            for kind in kinds:
                await self._execute_kind(plan, kind, clients[kind])

        cancelled = self._cancel_requested and any(
            unit.status == MigrationStatus.PENDING for unit in plan.units
        )
        report = MigrationReport.from_plan(plan, started_at=started_at, cancelled=cancelled)

        self.logger.info(
            f'Execution finished: {report.migrated} migrated, {report.failed} failed'
            + (' (cancelled)' if cancelled else '')
        )
        return report

    async def _execute_kind(
        self, plan: MigrationPlan, kind: str, client: ResourceClient
    ) -> None:
        # Sequential within a kind keeps report order deterministic
        for unit in plan.units_for(kind):
            if unit.status != MigrationStatus.PENDING:
                continue
            if self._cancel_requested:
                self.logger.warning(f'Cancellation requested, stopping {kind} migration')
                return
            await self._execute_unit(client, unit, plan.destination_tenant_id)

    async def _execute_unit(
        self, client: ResourceClient, unit: MigrationUnit, destination_tenant_id: str
    ) -> None:
        payload = unit.source.to_create_payload(
            destination_tenant_id, track_provenance=self.track_provenance
        )

        try:
            created = await client.create(payload)
        except Exception as e:
            unit.mark_failed(str(e) or type(e).__name__)
            self.logger.error(
                f'Failed to migrate {unit.kind} {unit.source_id} '
                f'({unit.source.name}): {unit.failure_reason}'
            )
            return

        if created.tenant_id != destination_tenant_id:
            # A copy outside the destination never counts as migrated
            unit.mark_failed(
                f'created as {created.id} in tenant {created.tenant_id}, '
                f'expected {destination_tenant_id}'
            )
            self.logger.error(
                f'Failed to migrate {unit.kind} {unit.source_id}: {unit.failure_reason}'
            )
            return

        unit.mark_migrated(created.id)
        self.logger.debug(f'Migrated {unit.kind} {unit.source_id} -> {created.id}')
