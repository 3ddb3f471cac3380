"""Plan, outcome and report models for tenant data migration."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..models.resource import Resource
from .exceptions import InvalidUnitTransitionError


class MigrationStatus(str, Enum):
    """Migration unit status enumeration."""

    PENDING = 'pending'
    MIGRATED = 'migrated'
    FAILED = 'failed'


class DetectionError(BaseModel):
    """A resource kind whose ``list`` call failed during detection."""

    kind: str = Field(..., description='Resource kind')
    tenant_id: str = Field(..., description='Tenant that was being scanned')
    message: str = Field(..., description='Error message')


class OrphanReport(BaseModel):
    """Candidates found in the source tenant, per kind.

    Kinds without candidates are omitted from ``candidates``.
    """

    user_id: str
    source_tenant_id: str
    candidates: Dict[str, List[Resource]] = Field(default_factory=dict)
    errors: List[DetectionError] = Field(default_factory=list)

    @property
    def total(self) -> int:
        """Total candidate count across kinds."""
        return sum(len(resources) for resources in self.candidates.values())

    @property
    def failed_kinds(self) -> List[str]:
        return [error.kind for error in self.errors]


class MigratedIndex(BaseModel):
    """Source ids that already have a marked copy in the destination tenant."""

    destination_tenant_id: str
    source_ids: Dict[str, Set[str]] = Field(default_factory=dict)
    errors: List[DetectionError] = Field(default_factory=list)

    def contains(self, kind: str, source_id: str) -> bool:
        return source_id in self.source_ids.get(kind, set())


class MigrationUnit(BaseModel):
    """One source resource and the outcome of moving it."""

    kind: str = Field(..., description='Resource kind')
    source_id: str = Field(..., description='Id in the source tenant')
    source: Resource = Field(..., description='Source resource as detected')
    destination_id: Optional[str] = Field(
        default=None, description='Id assigned by the destination tenant'
    )
    status: MigrationStatus = Field(default=MigrationStatus.PENDING)
    failure_reason: Optional[str] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)

    def _ensure_pending(self) -> None:
        if self.status != MigrationStatus.PENDING:
            raise InvalidUnitTransitionError(
                f'{self.kind} {self.source_id} is already {self.status.value}'
            )

    def mark_migrated(self, destination_id: str) -> None:
        """Record a successful create in the destination tenant."""
        self._ensure_pending()
        self.status = MigrationStatus.MIGRATED
        self.destination_id = destination_id
        self.completed_at = datetime.now()

    def mark_failed(self, reason: str) -> None:
        """Record a failed create; the reason is never left empty."""
        self._ensure_pending()
        self.status = MigrationStatus.FAILED
        self.failure_reason = reason or 'unknown error'
        self.completed_at = datetime.now()


class MigrationPlan(BaseModel):
    """Ordered migration units for one run, grouped by kind."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    source_tenant_id: str
    destination_tenant_id: str
    units: Tuple[MigrationUnit, ...] = ()
    found: Dict[str, int] = Field(
        default_factory=dict, description='Candidates detected per kind'
    )
    skipped: Dict[str, List[str]] = Field(
        default_factory=dict,
        description='Source ids per kind that already have a destination copy',
    )
    unmatched: Dict[str, List[str]] = Field(
        default_factory=dict,
        description='Requested source ids per kind that were not detected',
    )
    detection_errors: Tuple[DetectionError, ...] = ()

    @property
    def kinds(self) -> List[str]:
        """Kinds with at least one unit, in plan order."""
        kinds: List[str] = []
        for unit in self.units:
            if unit.kind not in kinds:
                kinds.append(unit.kind)
        return kinds

    def units_for(self, kind: str) -> List[MigrationUnit]:
        return [unit for unit in self.units if unit.kind == kind]

    def migrated_units(self) -> List[MigrationUnit]:
        return [u for u in self.units if u.status == MigrationStatus.MIGRATED]


class KindSummary(BaseModel):
    """Per-kind counts."""

    found: int = 0
    migrated: int = 0
    failed: int = 0
    skipped: int = 0


class TenantSnapshot(BaseModel):
    """Resource counts of one tenant at a point in time."""

    tenant_id: str
    user_id: Optional[str] = None
    counts: Dict[str, int] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=datetime.now)

    @property
    def complete(self) -> bool:
        return not self.errors

    @property
    def total(self) -> Optional[int]:
        """Sum of all counts, or None when any kind could not be counted."""
        if self.errors:
            return None
        return sum(self.counts.values())


class VerificationMismatch(BaseModel):
    """Observed destination growth differs from the number of migrated units."""

    kind: Optional[str] = Field(default=None, description='None for the total')
    expected_delta: int
    observed_delta: Optional[int] = None
    message: str


class KindVerification(BaseModel):
    kind: str
    before: Optional[int] = None
    after: Optional[int] = None
    expected_delta: int = 0
    observed_delta: Optional[int] = None
    consistent: bool = False


class VerificationResult(BaseModel):
    """Destination counts before and after execution."""

    destination_tenant_id: str
    before: Optional[int] = None
    after: Optional[int] = None
    expected_delta: int = 0
    observed_delta: Optional[int] = None
    consistent: bool = False
    kinds: Dict[str, KindVerification] = Field(default_factory=dict)

    @property
    def mismatch(self) -> Optional[VerificationMismatch]:
        if self.consistent:
            return None
        if self.observed_delta is None:
            message = 'destination counts could not be read'
        else:
            message = (
                f'expected +{self.expected_delta} resources, '
                f'observed {self.observed_delta:+d}'
            )
        return VerificationMismatch(
            expected_delta=self.expected_delta,
            observed_delta=self.observed_delta,
            message=message,
        )


class CleanupUnitError(BaseModel):
    """A delete that failed during cleanup or rollback."""

    kind: str
    resource_id: str
    message: str


class CleanupReport(BaseModel):
    """Outcome of deleting resources after a run."""

    tenant_id: str = Field(..., description='Tenant the deletions targeted')
    attempted: int = 0
    deleted: List[str] = Field(default_factory=list)
    errors: List[CleanupUnitError] = Field(default_factory=list)
    skipped_reason: Optional[str] = Field(
        default=None, description='Why no deletion was attempted'
    )

    @property
    def success(self) -> bool:
        return not self.errors


class MigrationReport(BaseModel):
    """Aggregate result of one migration run."""

    user_id: str
    source_tenant_id: str
    destination_tenant_id: str
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    dry_run: bool = False
    cancelled: bool = False
    kinds: Dict[str, KindSummary] = Field(default_factory=dict)
    units: List[MigrationUnit] = Field(default_factory=list)
    detection_errors: List[DetectionError] = Field(default_factory=list)
    unmatched: Dict[str, List[str]] = Field(
        default_factory=dict, description='Requested source ids that were not detected'
    )
    verification: Optional[VerificationResult] = None
    cleanup: Optional[CleanupReport] = None
    rollback: Optional[CleanupReport] = None

    @computed_field
    @property
    def found(self) -> int:
        return sum(summary.found for summary in self.kinds.values())

    @computed_field
    @property
    def migrated(self) -> int:
        return sum(summary.migrated for summary in self.kinds.values())

    @computed_field
    @property
    def failed(self) -> int:
        return sum(summary.failed for summary in self.kinds.values())

    @computed_field
    @property
    def success(self) -> bool:
        """True only when nothing failed, nothing was left unscanned and the run finished."""
        return self.failed == 0 and not self.detection_errors and not self.cancelled

    @property
    def failed_units(self) -> List[MigrationUnit]:
        return [u for u in self.units if u.status == MigrationStatus.FAILED]

    @classmethod
    def from_plan(
        cls,
        plan: MigrationPlan,
        started_at: Optional[datetime] = None,
        dry_run: bool = False,
        cancelled: bool = False,
    ) -> 'MigrationReport':
        """Summarize a plan after execution.

        Pending units are only listed for dry runs; after execution they are
        units a cancellation never reached and are left out.
        """
        kinds: Dict[str, KindSummary] = {}
        for kind, found in plan.found.items():
            kinds[kind] = KindSummary(
                found=found, skipped=len(plan.skipped.get(kind, []))
            )

        units = []
        for unit in plan.units:
            summary = kinds.setdefault(unit.kind, KindSummary())
            if unit.status == MigrationStatus.MIGRATED:
                summary.migrated += 1
            elif unit.status == MigrationStatus.FAILED:
                summary.failed += 1
            elif not dry_run:
                continue
            units.append(unit)

        return cls(
            user_id=plan.user_id,
            source_tenant_id=plan.source_tenant_id,
            destination_tenant_id=plan.destination_tenant_id,
            started_at=started_at or datetime.now(),
            completed_at=datetime.now(),
            dry_run=dry_run,
            cancelled=cancelled,
            kinds=kinds,
            units=units,
            detection_errors=list(plan.detection_errors),
            unmatched={kind: list(ids) for kind, ids in plan.unmatched.items()},
        )
