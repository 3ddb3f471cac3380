"""Tenant data migration: detection, planning, execution, verification, cleanup."""

from .cleanup import CleanupCoordinator
from .detector import OrphanDetector
from .engine import TenantMigrationEngine
from .exceptions import (
    InvalidUnitTransitionError,
    MigrationError,
    UnknownResourceKindError,
)
from .executor import MigrationExecutor
from .models import (
    CleanupReport,
    CleanupUnitError,
    DetectionError,
    KindSummary,
    MigratedIndex,
    MigrationPlan,
    MigrationReport,
    MigrationStatus,
    MigrationUnit,
    OrphanReport,
    TenantSnapshot,
    VerificationMismatch,
    VerificationResult,
)
from .planner import MigrationPlanner
from .registry import ResourceRegistry
from .verifier import Verifier

__all__ = [
    'CleanupCoordinator',
    'CleanupReport',
    'CleanupUnitError',
    'DetectionError',
    'InvalidUnitTransitionError',
    'KindSummary',
    'MigratedIndex',
    'MigrationError',
    'MigrationExecutor',
    'MigrationPlan',
    'MigrationPlanner',
    'MigrationReport',
    'MigrationStatus',
    'MigrationUnit',
    'OrphanDetector',
    'OrphanReport',
    'ResourceRegistry',
    'TenantMigrationEngine',
    'TenantSnapshot',
    'UnknownResourceKindError',
    'VerificationMismatch',
    'VerificationResult',
    'Verifier',
]
