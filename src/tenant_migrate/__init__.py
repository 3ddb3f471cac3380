"""Tenant Migration Tool

Detects resources a user created while attached to one tenant of the checkout
platform and recreates them under the tenant the user was moved to.
"""

__version__ = '0.1.0'
__author__ = 'Tenant Migration Team'
__email__ = 'team@example.com'

from .migration import MigrationReport, ResourceRegistry, TenantMigrationEngine

__all__ = ['MigrationReport', 'ResourceRegistry', 'TenantMigrationEngine']
