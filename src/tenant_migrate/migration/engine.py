"""Migration engine - main entry point for tenant data migration."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from loguru import logger

from ..api.client import CheckoutClient, CheckoutClientFactory
from ..config.config import Config, MigrationConfig
from ..utils.logging import run_context
from .cleanup import CleanupCoordinator
from .detector import OrphanDetector
from .executor import MigrationExecutor
from .models import MigrationReport, OrphanReport, TenantSnapshot
from .planner import MigrationPlanner
from .registry import ResourceRegistry
from .verifier import Verifier


class TenantMigrationEngine:
    """Moves a user's orphaned resources from one tenant to another.

    Runs detect, plan, execute, verify and the optional cleanup in that order
    and returns a single report. Runtime failures end up in the report; only
    invalid arguments and unknown resource kinds raise.
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        settings: Optional[MigrationConfig] = None,
        client: Optional[CheckoutClient] = None,
    ):
        """Initialize migration engine.

        Args:
            registry: Resource kinds and their clients
            settings: Migration settings (defaults when omitted)
            client: Platform client to close with the engine, if any
        """
        self.registry = registry
        self.settings = settings or MigrationConfig()
        self.client = client
        self.logger = logger.bind(component='TenantMigrationEngine')

        self.detector = OrphanDetector(registry)
        self.planner = MigrationPlanner()
        self.executor = MigrationExecutor(
            registry,
            track_provenance=self.settings.track_provenance,
            concurrent_kinds=self.settings.concurrent_kinds,
        )
        self.verifier = Verifier(registry)
        self.cleanup_coordinator = CleanupCoordinator(registry)

    @classmethod
    def from_config(cls, config: Config) -> 'TenantMigrationEngine':
        """Create an engine talking to the configured checkout platform."""
        client = CheckoutClientFactory.create_client(config.platform)
        registry = ResourceRegistry.from_config(config, client)
        return cls(registry, settings=config.migration, client=client)

    async def migrate(
        self,
        user_id: str,
        source_tenant_id: str,
        destination_tenant_id: str,
        allow_cleanup: Optional[bool] = None,
        kinds: Optional[Iterable[str]] = None,
        dry_run: Optional[bool] = None,
        rollback_on_error: Optional[bool] = None,
        resource_ids: Optional[Dict[str, Iterable[str]]] = None,
    ) -> MigrationReport:
        """Migrate a user's resources from the source to the destination tenant.

        Args:
            user_id: User whose resources are migrated
            source_tenant_id: Tenant the resources were created in
            destination_tenant_id: Tenant the user now belongs to
            allow_cleanup: Delete source resources after a fully successful run
            kinds: Kinds to migrate, all registered kinds when omitted
            dry_run: Detect and plan only
            rollback_on_error: Delete destination copies if the run fails
            resource_ids: Only migrate these source ids per kind; requested ids
                that are not detected are reported as unmatched. Limits the run
                to the given kinds unless ``kinds`` is set.

        Returns:
            Migration report

        Raises:
            ValueError: If identifiers are empty or both tenants are the same
            UnknownResourceKindError: If a requested kind is not registered
        """
        self._validate_identifiers(user_id, source_tenant_id, destination_tenant_id)
        if resource_ids is not None:
            resource_ids = {kind: list(ids) for kind, ids in resource_ids.items()}
            self.registry.resolve(resource_ids)
            if kinds is None:
                kinds = list(resource_ids)
        selected = self.registry.resolve(kinds)
        if resource_ids is not None:
            resource_ids = {
                kind: ids for kind, ids in resource_ids.items() if kind in selected
            }

        with run_context(user_id, source_tenant_id, destination_tenant_id):
            return await self._run(
                user_id,
                source_tenant_id,
                destination_tenant_id,
                selected,
                allow_cleanup=self._setting(allow_cleanup, self.settings.allow_cleanup),
                dry_run=self._setting(dry_run, self.settings.dry_run),
                rollback_on_error=self._setting(
                    rollback_on_error, self.settings.rollback_on_error
                ),
                resource_ids=resource_ids,
            )

    async def _run(
        self,
        user_id: str,
        source_tenant_id: str,
        destination_tenant_id: str,
        selected: List[str],
        allow_cleanup: bool,
        dry_run: bool,
        rollback_on_error: bool,
        resource_ids: Optional[Dict[str, List[str]]] = None,
    ) -> MigrationReport:
        self.executor.reset()
        started_at = datetime.now()
        self.logger.info(
            f'Starting {"dry run of " if dry_run else ""}migration for user {user_id}: '
            f'{source_tenant_id} -> {destination_tenant_id} ({", ".join(selected)})'
        )

        orphans = await self.detector.detect(user_id, source_tenant_id, selected)

        migrated_index = None
        if self.settings.track_provenance and orphans.candidates:
            migrated_index = await self.detector.find_migrated(
                source_tenant_id,
                destination_tenant_id,
                list(orphans.candidates),
            )

        plan = self.planner.plan(
            orphans, destination_tenant_id, migrated_index, resource_ids=resource_ids
        )
        for kind, ids in plan.unmatched.items():
            self.logger.warning(
                f'{len(ids)} requested {kind} not found for user {user_id} '
                f'in tenant {source_tenant_id}: {", ".join(ids)}'
            )

        if dry_run:
            report = MigrationReport.from_plan(plan, started_at=started_at, dry_run=True)
            self.logger.info(
                f'Dry run finished: {report.found} found, {len(plan.units)} to migrate'
            )
            return report

        before = await self.verifier.snapshot(destination_tenant_id, plan.kinds)
        report = await self.executor.execute(plan)
        report.started_at = started_at
        after = await self.verifier.snapshot(destination_tenant_id, plan.kinds)
        report.verification = self.verifier.verify(
            destination_tenant_id, before, after, plan
        )

        if rollback_on_error and not report.success and plan.migrated_units():
            report.rollback = await self.cleanup_coordinator.rollback(plan)

        report.cleanup = await self.cleanup_coordinator.cleanup(
            plan, allow_cleanup, report.success
        )
        report.completed_at = datetime.now()

        log = self.logger.info if report.success else self.logger.warning
        log(
            f'Migration {"completed" if report.success else "finished with problems"}: '
            f'{report.found} found, {report.migrated} migrated, {report.failed} failed, '
            f'{len(report.detection_errors)} detection errors'
        )
        return report

    async def find_orphans(
        self,
        user_id: str,
        source_tenant_id: str,
        kinds: Optional[Iterable[str]] = None,
    ) -> OrphanReport:
        """Detect orphaned resources without migrating anything."""
        if not user_id or not source_tenant_id:
            raise ValueError('user_id and source_tenant_id must be provided')
        return await self.detector.detect(
            user_id, source_tenant_id, self.registry.resolve(kinds)
        )

    async def tenant_stats(
        self,
        tenant_id: str,
        user_id: Optional[str] = None,
        kinds: Optional[Iterable[str]] = None,
    ) -> TenantSnapshot:
        """Count resources per kind in a tenant, optionally for one user."""
        if not tenant_id:
            raise ValueError('tenant_id must be provided')
        return await self.verifier.snapshot(
            tenant_id, self.registry.resolve(kinds), user_id=user_id
        )

    def cancel(self) -> None:
        """Stop the running migration before its next unit."""
        self.logger.warning('Migration cancellation requested')
        self.executor.cancel()

    def close(self) -> None:
        if self.client is not None:
            self.client.close()

    @staticmethod
    def _setting(value: Optional[bool], default: bool) -> bool:
        return default if value is None else value

    @staticmethod
    def _validate_identifiers(
        user_id: str, source_tenant_id: str, destination_tenant_id: str
    ) -> None:
        for name, value in (
            ('user_id', user_id),
            ('source_tenant_id', source_tenant_id),
            ('destination_tenant_id', destination_tenant_id),
        ):
            if not value or not str(value).strip():
                raise ValueError(f'{name} must be a non-empty identifier')

        if source_tenant_id == destination_tenant_id:
            raise ValueError('Source and destination tenants must differ')
