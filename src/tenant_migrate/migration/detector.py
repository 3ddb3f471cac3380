"""Detection of orphaned resources left behind in a source tenant."""

from typing import Iterable, Optional

from loguru import logger

from ..models.resource import ResourceFilter
from .models import DetectionError, MigratedIndex, OrphanReport
from .registry import ResourceRegistry


class OrphanDetector:
    """Finds resources a user created in a tenant they no longer belong to."""

    def __init__(self, registry: ResourceRegistry):
        """Initialize orphan detector.

        Args:
            registry: Resource kinds and their clients
        """
        self.registry = registry
        self.logger = logger.bind(component='OrphanDetector')

    async def detect(
        self,
        user_id: str,
        source_tenant_id: str,
        kinds: Optional[Iterable[str]] = None,
    ) -> OrphanReport:
        """List every resource of the user in the source tenant.

        A failing ``list`` call is recorded for its kind and detection moves
        on to the next kind.

        Args:
            user_id: Owner of the resources
            source_tenant_id: Tenant the resources were created in
            kinds: Kinds to scan, all registered kinds when omitted

        Returns:
            Orphan report with candidates per kind
        """
        report = OrphanReport(user_id=user_id, source_tenant_id=source_tenant_id)
        resource_filter = ResourceFilter(
            tenant_id=source_tenant_id, owner_user_id=user_id
        )

        for kind in self.registry.resolve(kinds):
            try:
                resources = await self.registry.get(kind).list(resource_filter)
            except Exception as e:
                self.logger.warning(
                    f'Failed to list {kind} in tenant {source_tenant_id}: {e}'
                )
                report.errors.append(
                    DetectionError(
                        kind=kind,
                        tenant_id=source_tenant_id,
                        message=str(e) or type(e).__name__,
                    )
                )
                continue

            if resources:
                report.candidates[kind] = list(resources)
                self.logger.info(
                    f'Found {len(resources)} orphaned {kind} for user {user_id}'
                )

        self.logger.info(
            f'Detection finished: {report.total} candidates, '
            f'{len(report.errors)} kinds failed'
        )
        return report

    async def find_migrated(
        self,
        source_tenant_id: str,
        destination_tenant_id: str,
        kinds: Optional[Iterable[str]] = None,
    ) -> MigratedIndex:
        """Collect source ids that a previous run already copied.

        Destination copies carry a ``migrated_from`` marker naming the source
        tenant and id, so the whole destination is scanned regardless of owner:
        the platform may stamp copies with the API key's user. A kind whose
        destination scan fails is reported as a detection error, so it cannot be
        migrated into duplicates.
        """
        index = MigratedIndex(destination_tenant_id=destination_tenant_id)
        resource_filter = ResourceFilter(tenant_id=destination_tenant_id)

        for kind in self.registry.resolve(kinds):
            try:
                resources = await self.registry.get(kind).list(resource_filter)
            except Exception as e:
                self.logger.warning(
                    f'Failed to list {kind} in destination {destination_tenant_id}: {e}'
                )
                index.errors.append(
                    DetectionError(
                        kind=kind,
                        tenant_id=destination_tenant_id,
                        message=str(e) or type(e).__name__,
                    )
                )
                continue

            source_ids = {
                marker['resource_id']
                for marker in (r.migration_source for r in resources)
                if marker and marker.get('tenant_id') == source_tenant_id
            }
            if source_ids:
                index.source_ids[kind] = source_ids
                self.logger.info(
                    f'{len(source_ids)} {kind} already migrated to {destination_tenant_id}'
                )

        return index
