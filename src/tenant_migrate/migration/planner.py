"""Migration planning: detected resources to ordered migration units."""

from typing import Dict, Iterable, List, Optional

from .models import MigratedIndex, MigrationPlan, MigrationUnit, OrphanReport


class MigrationPlanner:
    """Builds deterministic migration plans.

    Kinds follow the order of ``orphan_report.candidates`` (registration
    order, as produced by the detector); resources keep detection order.
    """

    def plan(
        self,
        orphan_report: OrphanReport,
        destination_tenant_id: str,
        migrated_index: Optional[MigratedIndex] = None,
        resource_ids: Optional[Dict[str, Iterable[str]]] = None,
    ) -> MigrationPlan:
        """Create a plan without performing any I/O.

        Args:
            orphan_report: Detector output
            destination_tenant_id: Tenant to migrate into
            migrated_index: Source ids with an existing destination copy
            resource_ids: Only plan these source ids per kind; kinds missing
                from the mapping are left out

        Returns:
            Immutable migration plan
        """
        units: List[MigrationUnit] = []
        found: Dict[str, int] = {}
        skipped: Dict[str, List[str]] = {}
        blocked = set()

        detection_errors = list(orphan_report.errors)
        if migrated_index is not None:
            detection_errors.extend(migrated_index.errors)
            blocked = {error.kind for error in migrated_index.errors}

        selection = _selection(resource_ids)

        for kind, resources in orphan_report.candidates.items():
            if selection is not None:
                if kind not in selection:
                    continue
                resources = [r for r in resources if r.id in selection[kind]]

            found[kind] = len(resources)
            if kind in blocked:
                continue

            for resource in resources:
                if migrated_index is not None and migrated_index.contains(kind, resource.id):
                    skipped.setdefault(kind, []).append(resource.id)
                    continue
                units.append(
                    MigrationUnit(kind=kind, source_id=resource.id, source=resource)
                )

        unmatched: Dict[str, List[str]] = {}
        if selection is not None:
            failed_kinds = set(orphan_report.failed_kinds)
            for kind, requested in selection.items():
                if kind in failed_kinds:
                    continue
                detected = {r.id for r in orphan_report.candidates.get(kind, [])}
                missing = [i for i in requested if i not in detected]
                if missing:
                    unmatched[kind] = missing

        return MigrationPlan(
            user_id=orphan_report.user_id,
            source_tenant_id=orphan_report.source_tenant_id,
            destination_tenant_id=destination_tenant_id,
            units=tuple(units),
            found=found,
            skipped=skipped,
            unmatched=unmatched,
            detection_errors=tuple(detection_errors),
        )


def _selection(
    resource_ids: Optional[Dict[str, Iterable[str]]],
) -> Optional[Dict[str, List[str]]]:
    # Request order, duplicates dropped
    if resource_ids is None:
        return None
    return {kind: list(dict.fromkeys(ids)) for kind, ids in resource_ids.items()}
