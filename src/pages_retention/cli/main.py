"""Main CLI entry point."""

import sys
from datetime import timezone
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pages_retention.config.loader import load_config
from pages_retention.config.models import Environment, RetentionConfig
from pages_retention.orchestrator.executor import DeletionStatus
from pages_retention.orchestrator.orchestrator import RetentionOrchestrator, RunSummary
from pages_retention.pages.client import PagesClient
from pages_retention.utils.errors import ConfigurationError, FetchError, NoProtectedDeploymentError
from pages_retention.utils.logging import setup_logging, get_logger

console = Console()
logger = get_logger(__name__)


@click.group()
@click.option('--log-level', default='info', type=click.Choice(['debug', 'info', 'warning', 'error']))
@click.option('--log-file', type=click.Path(dir_okay=False), help='Also write JSON logs to this file')
@click.pass_context
def cli(ctx, log_level, log_file):
    """Cloudflare Pages deployment retention."""
    ctx.ensure_object(dict)
    ctx.obj['log_level'] = log_level

    setup_logging(log_level, log_file)


def config_overrides(func):
    """Attach the options that override environment configuration."""
    func = click.option(
        '--expiration-hours',
        type=click.FloatRange(min=0),
        help='Delete non-exempt deployments older than this many hours'
    )(func)
    func = click.option(
        '--env',
        type=click.Choice([e.value for e in Environment]),
        help='Environment to clean up'
    )(func)
    func = click.option('--project', help='Pages project name')(func)
    return func


def resolve_config(project: Optional[str], env: Optional[str], expiration_hours: Optional[float]) -> RetentionConfig:
    """Load configuration or exit with an error message."""
    try:
        return load_config(overrides={
            'project_name': project,
            'environment': env,
            'expiration_hours': expiration_hours,
        })
    except ConfigurationError as e:
        console.print("[red]Invalid configuration. Exiting.[/red]")
        for problem in e.problems:
            console.print(f"  [red]✗[/red] {escape(problem)}")
        sys.exit(1)


@cli.command()
@config_overrides
@click.option('--dry-run', is_flag=True, help='Show what would be deleted without deleting')
def run(project, env, expiration_hours, dry_run):
    """Delete expired deployments, keeping the latest successful one."""
    cfg = resolve_config(project, env, expiration_hours)

    console.print(Panel.fit(
        f"[bold]Cleaning up {cfg.project_name} ({cfg.environment.value})[/bold]\n"
        f"Expiration: {cfg.expiration_hours:g}h\n"
        f"Mode: {'dry run' if dry_run else 'delete'}",
        title="Retention Run",
        border_style="cyan"
    ))

    client = PagesClient(cfg.api_token)
    try:
        orchestrator = RetentionOrchestrator(cfg, client)
        summary = orchestrator.run(dry_run=dry_run, progress_callback=_print_progress)
    except Exception as e:
        logger.exception("Unexpected error during retention run")
        console.print(f"[red]Unexpected error:[/red] {e}")
        sys.exit(1)
    finally:
        client.close()

    _print_summary(summary)

    if isinstance(summary.error, FetchError):
        sys.exit(1)


@cli.command()
@config_overrides
def plan(project, env, expiration_hours):
    """Show the retention verdict for every deployment."""
    cfg = resolve_config(project, env, expiration_hours)

    client = PagesClient(cfg.api_token)
    try:
        orchestrator = RetentionOrchestrator(cfg, client)
        now = orchestrator.clock()
        decision = orchestrator.plan(now=now)
    except FetchError as e:
        console.print(f"[red]Fetch failed:[/red] {escape(str(e))}")
        sys.exit(1)
    finally:
        client.close()

    if not decision.verdicts:
        console.print("[yellow]No deployments found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Deployment", style="cyan")
    table.add_column("Created", style="magenta")
    table.add_column("Age (h)", justify="right")
    table.add_column("Status")
    table.add_column("Verdict")
    table.add_column("Reason", style="dim")

    for verdict in decision.verdicts:
        record = verdict.record
        table.add_row(
            record.id,
            record.created_on.astimezone(timezone.utc).strftime('%Y-%m-%d %H:%M:%S'),
            f"{record.age_hours(now):.1f}",
            record.stage_status.value,
            "[red]delete[/red]" if verdict.delete else "[green]keep[/green]",
            verdict.reason.value
        )

    console.print(table)

    if decision.protected is None:
        console.print("\n[yellow]No successful deployment found; a run would abort without deleting.[/yellow]")
    else:
        console.print(
            f"\nProtected: [bold]{decision.protected.id}[/bold]  "
            f"Candidates: [bold]{len(decision.delete_candidates)}[/bold]"
        )


@cli.command('config')
@config_overrides
def show_config(project, env, expiration_hours):
    """Show the effective configuration with credentials redacted."""
    cfg = resolve_config(project, env, expiration_hours)
    console.print_json(data=cfg.to_logging_safe())


def _print_progress(deployment_id: str, status: DeletionStatus, error: Optional[str]) -> None:
    if status == DeletionStatus.DELETED:
        console.print(f"  [green]✓[/green] {deployment_id}")
    elif status == DeletionStatus.FAILED:
        console.print(f"  [red]✗[/red] {deployment_id}: {escape(str(error))}")
    elif status == DeletionStatus.SKIPPED:
        console.print(f"  [dim]-[/dim] {deployment_id} (dry run)")


def _print_summary(summary: RunSummary) -> None:
    """Render the run summary."""
    console.print()

    if summary.is_aborted():
        if isinstance(summary.error, NoProtectedDeploymentError):
            body = (
                f"[yellow]⚠ No successful deployments found[/yellow]\n\n"
                f"Fetched: {summary.fetched_count}\n"
                f"Nothing was deleted."
            )
            border = "yellow"
        else:
            body = f"[red]✗ Run aborted[/red]\n\n{escape(str(summary.error))}"
            border = "red"
        console.print(Panel.fit(body, title="Retention Aborted", border_style=border))
        return

    deletion = summary.deletion
    lines = [
        f"Fetched: {summary.fetched_count}",
        f"Protected: {summary.protected.id if summary.protected else '-'}",
        f"Candidates: {summary.candidate_count}",
    ]
    if summary.dry_run:
        lines.append(f"Would delete: {deletion.skipped_count}")
    else:
        lines.append(f"Deleted: {deletion.deleted_count}")
        lines.append(f"Failed: {deletion.failed_count}")
    lines.append(f"Duration: {summary.duration:.2f}s")

    has_failures = deletion.has_failures()
    header = "[yellow]⚠ Done with failures[/yellow]" if has_failures else "[green]✓ Done[/green]"
    console.print(Panel.fit(
        header + "\n\n" + "\n".join(lines),
        title="Retention Complete",
        border_style="yellow" if has_failures else "green"
    ))

    if has_failures:
        console.print("\n[bold]Failed Deployments:[/bold]")
        for result in deletion.results:
            if result.is_failed():
                console.print(f"  [red]✗[/red] {result.deployment_id}: {escape(str(result.error))}")


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
