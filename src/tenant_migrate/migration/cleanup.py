"""Opt-in deletion of source resources after a successful migration."""

from typing import List

from loguru import logger

from .models import CleanupReport, CleanupUnitError, MigrationPlan, MigrationUnit
from .registry import ResourceRegistry


class CleanupCoordinator:
    """Deletes migrated resources from one side of a finished run.

    ``cleanup`` removes source originals and only runs when explicitly allowed
    and the run fully succeeded. ``rollback`` removes destination copies of an
    unsuccessful run. Both are best effort: a failed delete is recorded and
    the remaining deletes still happen.
    """

    def __init__(self, registry: ResourceRegistry):
        self.registry = registry
        self.logger = logger.bind(component='CleanupCoordinator')

    async def cleanup(
        self, plan: MigrationPlan, allow_cleanup: bool, success: bool
    ) -> CleanupReport:
        """Delete source resources of migrated units.

        Args:
            plan: Executed plan
            allow_cleanup: Caller opted in to deleting source data
            success: Whether the whole run succeeded

        Returns:
            Cleanup report; zero attempts when skipped
        """
        report = CleanupReport(tenant_id=plan.source_tenant_id)

        if not allow_cleanup:
            report.skipped_reason = 'cleanup not enabled'
            return report

        if not success:
            report.skipped_reason = 'migration did not fully succeed'
            self.logger.warning(
                'Skipping source cleanup: migration did not fully succeed, '
                'source data is kept'
            )
            return report

        units = plan.migrated_units()
        self.logger.info(
            f'Deleting {len(units)} migrated resources from tenant {plan.source_tenant_id}'
        )
        await self._delete_all(report, units, lambda unit: unit.source_id)
        return report

    async def rollback(self, plan: MigrationPlan) -> CleanupReport:
        """Delete the destination copies created by this run."""
        report = CleanupReport(tenant_id=plan.destination_tenant_id)
        units = plan.migrated_units()

        self.logger.info(
            f'Rolling back {len(units)} copies from tenant {plan.destination_tenant_id}'
        )
        await self._delete_all(report, units, lambda unit: unit.destination_id)
        return report

    async def _delete_all(
        self, report: CleanupReport, units: List[MigrationUnit], resource_id_of
    ) -> None:
        for unit in units:
            resource_id = resource_id_of(unit)
            report.attempted += 1
            try:
                await self.registry.get(unit.kind).delete(resource_id)
            except Exception as e:
                message = str(e) or type(e).__name__
                self.logger.error(f'Failed to delete {unit.kind} {resource_id}: {message}')
                report.errors.append(
                    CleanupUnitError(
                        kind=unit.kind, resource_id=resource_id, message=message
                    )
                )
                continue
            report.deleted.append(resource_id)
