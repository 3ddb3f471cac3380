"""Main CLI entry point for the Tenant Migration Tool."""

import sys
import asyncio
from typing import Dict, List, Optional, Tuple
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config.config import Config
from ..utils.logging import setup_logging
from ..migration.engine import TenantMigrationEngine
from ..migration.models import MigrationReport, OrphanReport, TenantSnapshot

console = Console()

VERSION = '0.1.0'


@click.group()
@click.version_option(version=VERSION, prog_name='tenant-migrate')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Tenant Migration Tool - Move a user's orphaned resources to their new tenant."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    # Basic logging first, refined once the configuration is loaded
    setup_logging('DEBUG' if verbose else 'WARNING')


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
@click.pass_context
def init(ctx: click.Context, output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]Tenant Migration Tool[/bold green]\n'
            'Initializing configuration...',
            border_style='green',
        )
    )

    try:
        Config.create_template(output)

        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your checkout platform details[/yellow]'
        )

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@click.argument('user_id')
@click.argument('source_tenant')
@click.option('--kind', '-k', 'kinds', multiple=True, help='Resource kind to scan')
@click.pass_context
def detect(
    ctx: click.Context, user_id: str, source_tenant: str, kinds: Tuple[str, ...]
) -> None:
    """List resources USER_ID left behind in SOURCE_TENANT."""
    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        engine = _build_engine(config)
        try:
            orphans = asyncio.run(
                engine.find_orphans(user_id, source_tenant, kinds=kinds or None)
            )
        finally:
            engine.close()

        _display_orphans(orphans)

    except Exception as e:
        console.print(f'[red]✗[/red] Detection failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


def _parse_resource_ids(
    ctx: click.Context, param: click.Parameter, values: Tuple[str, ...]
) -> Optional[Dict[str, List[str]]]:
    """Group KIND:ID values by kind."""
    if not values:
        return None

    resource_ids: Dict[str, List[str]] = {}
    for value in values:
        kind, sep, resource_id = value.partition(':')
        if not sep or not kind or not resource_id:
            raise click.BadParameter(f'expected KIND:ID, got {value!r}')
        resource_ids.setdefault(kind, []).append(resource_id)
    return resource_ids


@cli.command()
@click.argument('user_id')
@click.argument('source_tenant')
@click.argument('destination_tenant')
@click.option('--kind', '-k', 'kinds', multiple=True, help='Resource kind to migrate')
@click.option(
    '--id',
    'resource_ids',
    multiple=True,
    callback=_parse_resource_ids,
    help='Only migrate this resource, as KIND:ID (repeatable)',
)
@click.option(
    '--allow-cleanup',
    is_flag=True,
    help='Delete source resources after a fully successful migration',
)
@click.option(
    '--rollback-on-error',
    is_flag=True,
    help='Delete destination copies if any resource fails',
)
@click.option(
    '--dry-run',
    is_flag=True,
    help='Perform a dry run without making changes',
)
@click.option(
    '--output',
    '-o',
    type=click.Path(dir_okay=False),
    help='Write the migration report as JSON',
)
@click.pass_context
def migrate(
    ctx: click.Context,
    user_id: str,
    source_tenant: str,
    destination_tenant: str,
    kinds: Tuple[str, ...],
    resource_ids: Optional[Dict[str, List[str]]],
    allow_cleanup: bool,
    rollback_on_error: bool,
    dry_run: bool,
    output: Optional[str],
) -> None:
    """Migrate USER_ID's resources from SOURCE_TENANT to DESTINATION_TENANT."""
    console.print(
        Panel.fit(
            '[bold blue]Tenant Migration Tool[/bold blue]\n'
            'Starting migration process...',
            border_style='blue',
        )
    )

    if dry_run:
        console.print(
            '[yellow]Running in dry-run mode - no changes will be made[/yellow]'
        )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        report = _run_migration(
            config,
            user_id,
            source_tenant,
            destination_tenant,
            kinds=kinds or None,
            resource_ids=resource_ids,
            allow_cleanup=allow_cleanup or None,
            rollback_on_error=rollback_on_error or None,
            dry_run=dry_run or None,
        )

    except Exception as e:
        console.print(f'[red]✗[/red] Migration failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)

    _display_migration_report(report)

    if output:
        Path(output).write_text(report.model_dump_json(indent=2), encoding='utf-8')
        console.print(f'[blue]Report written to {output}[/blue]')

    if not report.success:
        sys.exit(1)


@cli.command()
@click.argument('tenant')
@click.option('--user', '-u', 'user_id', help='Only count resources of this user')
@click.pass_context
def stats(ctx: click.Context, tenant: str, user_id: Optional[str]) -> None:
    """Show resource counts per kind for TENANT."""
    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        engine = _build_engine(config)
        try:
            snapshot = asyncio.run(engine.tenant_stats(tenant, user_id=user_id))
        finally:
            engine.close()

        _display_snapshot(snapshot)

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to collect stats: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate configuration and connectivity to the platform."""
    console.print(
        Panel.fit(
            '[bold cyan]Tenant Migration Tool[/bold cyan]\nValidating setup...',
            border_style='cyan',
        )
    )

    try:
        config = _load_config(ctx)
        console.print('[green]✓[/green] Configuration validation completed')

        engine = _build_engine(config)
        try:
            if not engine.client.test_connection():
                raise ConnectionError('Cannot connect to the checkout platform')
        finally:
            engine.close()

        console.print('[green]✓[/green] Connectivity validation passed')

    except Exception as e:
        console.print(f'[red]✗[/red] Validation failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the effective migration configuration."""
    console.print(
        Panel.fit(
            '[bold magenta]Tenant Migration Tool[/bold magenta]\nConfiguration',
            border_style='magenta',
        )
    )

    try:
        config = _load_config(ctx)

        table = Table(title='Migration Configuration')
        table.add_column('Setting', style='cyan')
        table.add_column('Value', style='green')

        table.add_row('Platform URL', config.platform.url)
        table.add_row('Organization', config.platform.organization_id or '-')
        for kind, kind_config in config.migration.kinds.items():
            table.add_row(f'Kind: {kind}', kind_config.endpoint)
        table.add_row('Allow Cleanup', '✓' if config.migration.allow_cleanup else '✗')
        table.add_row(
            'Rollback On Error', '✓' if config.migration.rollback_on_error else '✗'
        )
        table.add_row(
            'Concurrent Kinds', '✓' if config.migration.concurrent_kinds else '✗'
        )
        table.add_row(
            'Track Provenance', '✓' if config.migration.track_provenance else '✗'
        )

        console.print(table)

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to load status: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        return Config.from_file(config_path)

    default_paths = ['config.yaml', 'config.yml', '.tenant-migrate.yaml']
    for path in default_paths:
        if Path(path).exists():
            return Config.from_file(path)

    # Fall back to environment variables
    try:
        return Config.from_env()
    except ValueError:
        raise FileNotFoundError(
            'No configuration found. Use --config to specify a file or run '
            '"tenant-migrate init" to create one.'
        )


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)
    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(
        level=log_level, log_file=config.logging.file, log_format=config.logging.format
    )


def _build_engine(config: Config) -> TenantMigrationEngine:
    return TenantMigrationEngine.from_config(config)


def _run_migration(
    config: Config,
    user_id: str,
    source_tenant: str,
    destination_tenant: str,
    **options,
) -> MigrationReport:
    """Run the migration with a spinner while it is in progress."""
    engine = _build_engine(config)
    try:
        with console.status('[blue]Migrating resources...'):
            return asyncio.run(
                engine.migrate(user_id, source_tenant, destination_tenant, **options)
            )
    finally:
        engine.close()


def _display_orphans(orphans: OrphanReport) -> None:
    """Display detected orphaned resources."""
    if not orphans.candidates and not orphans.errors:
        console.print(
            f'[green]✓[/green] No orphaned resources for user {orphans.user_id} '
            f'in tenant {orphans.source_tenant_id}'
        )
        return

    table = Table(title=f'Orphaned resources in {orphans.source_tenant_id}')
    table.add_column('Kind', style='cyan')
    table.add_column('ID', style='blue')
    table.add_column('Name', style='green')

    for kind, resources in orphans.candidates.items():
        for resource in resources:
            table.add_row(kind, resource.id, resource.name)

    console.print(table)
    console.print(f'[blue]Total:[/blue] {orphans.total}')
    _display_errors(
        'Detection errors', [f'{e.kind}: {e.message}' for e in orphans.errors]
    )


def _display_snapshot(snapshot: TenantSnapshot) -> None:
    """Display per-kind resource counts."""
    title = f'Resources in {snapshot.tenant_id}'
    if snapshot.user_id:
        title += f' created by {snapshot.user_id}'

    table = Table(title=title)
    table.add_column('Kind', style='cyan')
    table.add_column('Count', style='green')

    for kind, count in snapshot.counts.items():
        table.add_row(kind, str(count))
    for kind, error in snapshot.errors.items():
        table.add_row(kind, f'[red]error: {error}[/red]')

    console.print(table)


def _display_migration_report(report: MigrationReport) -> None:
    """Display migration report results."""
    table = Table(title='Migration Summary')
    table.add_column('Kind', style='cyan')
    table.add_column('Found', style='blue')
    table.add_column('Migrated', style='green')
    table.add_column('Failed', style='red')
    table.add_column('Skipped', style='yellow')

    for kind, summary in report.kinds.items():
        table.add_row(
            kind,
            str(summary.found),
            str(summary.migrated),
            str(summary.failed),
            str(summary.skipped),
        )
    table.add_row(
        '[bold]Total[/bold]', str(report.found), str(report.migrated), str(report.failed), ''
    )

    console.print(table)

    if report.completed_at:
        duration = report.completed_at - report.started_at
        console.print(f'\n[blue]Migration Duration:[/blue] {duration}')

    if report.dry_run:
        console.print('[yellow]Dry run - nothing was created or deleted[/yellow]')

    if report.cancelled:
        console.print('[yellow]Migration was cancelled before all units ran[/yellow]')

    if report.verification is not None:
        verification = report.verification
        if verification.consistent:
            console.print(
                f'[green]✓[/green] Verification: destination grew by '
                f'{verification.observed_delta} as expected'
            )
        else:
            console.print(
                f'[yellow]![/yellow] Verification mismatch: '
                f'{verification.mismatch.message}'
            )

    if report.rollback is not None:
        console.print(
            f'[yellow]Rolled back {len(report.rollback.deleted)} of '
            f'{report.rollback.attempted} destination copies[/yellow]'
        )

    if report.cleanup is not None:
        if report.cleanup.skipped_reason:
            console.print(f'[blue]Cleanup skipped:[/blue] {report.cleanup.skipped_reason}')
        else:
            console.print(
                f'[green]✓[/green] Cleanup deleted {len(report.cleanup.deleted)} of '
                f'{report.cleanup.attempted} source resources'
            )

    _display_errors(
        'Detection errors', [f'{e.kind}: {e.message}' for e in report.detection_errors]
    )
    _display_errors(
        'Requested but not found',
        [
            f'{kind} {resource_id}'
            for kind, ids in report.unmatched.items()
            for resource_id in ids
        ],
    )
    _display_errors(
        'Errors',
        [f'{u.kind} {u.source_id}: {u.failure_reason}' for u in report.failed_units],
    )
    for label, cleanup_report in (
        ('Cleanup errors', report.cleanup),
        ('Rollback errors', report.rollback),
    ):
        if cleanup_report is not None:
            _display_errors(
                label,
                [f'{e.kind} {e.resource_id}: {e.message}' for e in cleanup_report.errors],
            )

    if report.success:
        console.print('[green]✓[/green] Migration completed successfully')
    else:
        console.print('[red]✗[/red] Migration did not fully succeed')


def _display_errors(title: str, errors) -> None:
    if not errors:
        return

    console.print(f'\n[red]{title} ({len(errors)}):[/red]')
    for error in errors[:5]:  # Show first 5 errors
        console.print(f'  • {error}')
    if len(errors) > 5:
        console.print(f'  ... and {len(errors) - 5} more')


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Migration interrupted by user[/red]')
        sys.exit(1)


if __name__ == '__main__':
    main()
