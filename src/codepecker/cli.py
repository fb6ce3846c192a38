"""
codepecker - Command line interface.

Usage:
    codepecker scan --url https://pecker.local:8081 --key KEY --file app.zip
    codepecker scan --key KEY --git https://git.local/app.git --user me --password pw
    codepecker scan --key KEY --task 20240101-42 --severity high --get-source
    codepecker scan --config codepecker.yaml --file app.zip
"""

import asyncio
import sys
from collections import Counter
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import ConfigFileError, load_config_file
from .core import Endpoint, PeckerClient, PeckerError, TaskStatus
from .logging_config import LOG_LEVELS, configure_logging
from .pipeline import ScanConfig, ScanPipeline
from .results import Report, SeverityLevel
from .submission import ArchiveSource, Project, ScmKind, ScmSource, SubmissionSource, Template


console = Console()

STATUS_DESCRIPTIONS = {
    TaskStatus.QUEUED: "[yellow]Queued, waiting for a scanner...",
    TaskStatus.UPLOADED: "[cyan]Source code uploaded...",
    TaskStatus.UNPACKED: "[cyan]Unpacked, waiting to scan...",
    TaskStatus.SCANNING: "[cyan]Scanning...",
}


def _load_config(ctx: click.Context, param: click.Parameter, value: Optional[str]):
    """Eager callback: turn a YAML file into defaults for the other options"""
    if value is None:
        return value

    # Keys may use the long option name (``file``) or the parameter name (``archive``)
    allowed = {}
    for other in ctx.command.params:
        if other.name == param.name:
            continue
        allowed[other.name] = other.name
        for opt in other.opts:
            if opt.startswith("--"):
                allowed[opt[2:].replace("-", "_")] = other.name
    try:
        defaults = load_config_file(value, allowed)
    except ConfigFileError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param)

    ctx.default_map = {**(ctx.default_map or {}), **defaults}
    return value


@click.group()
@click.version_option(version=__version__, prog_name="codepecker")
def cli():
    """
    codepecker - Codepecker static analysis client

    Submits source code, waits for the scan, and writes the findings to a JSON report.
    """
    pass


@cli.command()
@click.option('--config', type=click.Path(exists=True, dir_okay=False), is_eager=True,
              expose_value=False, callback=_load_config, help='YAML file with option defaults')
@click.option('--url', '-u', default='http://127.0.0.1:8081', help='Codepecker address (default: http://127.0.0.1:8081)')
@click.option('--key', '-k', envvar='CODEPECKER_KEY', help='Codepecker API key (env: CODEPECKER_KEY)')
@click.option('--proxy', help='Outbound proxy, e.g. http://127.0.0.1:8080')
@click.option('--project', '-p', default='test', help='Project name (default: test)')
@click.option('--group', help='Project group id')
@click.option('--lang', '-l', default='java', help='Project language (default: java)')
@click.option('--template', '-t', default=Template.DEFAULT.value,
              type=click.Choice([t.value for t in Template]), help='Rule template (default: default)')
@click.option('--rule', '-r', help='Rule id, required with --template user_defined')
@click.option('--file', '-f', 'archive', type=click.Path(exists=True, dir_okay=False), help='Source archive to upload')
@click.option('--svn', '-s', help='SVN repository URL')
@click.option('--git', '-g', help='Git repository URL')
@click.option('--user', help='SVN/Git user name')
@click.option('--password', help='SVN/Git password')
@click.option('--branch', help='SVN/Git branch')
@click.option('--task', help='Existing task id: skip submission and fetch its results')
@click.option('--severity', default=SeverityLevel.INFO.value,
              type=click.Choice([s.value for s in SeverityLevel]), help='Severity floor (default: info)')
@click.option('--output', '-o', default='results.json', type=click.Path(dir_okay=False),
              help='Report file (default: results.json)')
@click.option('--get-source/--no-get-source', default=False, help='Attach source file bytes to findings')
@click.option('--poll-interval', default=5.0, type=click.FloatRange(min=0), help='Seconds between status polls (default: 5)')
@click.option('--timeout', type=click.FloatRange(min=0, min_open=True), help='Abort the whole run after N seconds')
@click.option('--concurrency', default=1, type=click.IntRange(min=1), help='Findings enriched in parallel (default: 1)')
@click.option('--log-level', default='info', type=click.Choice(list(LOG_LEVELS)), help='Log level (default: info)')
def scan(
    url: str,
    key: Optional[str],
    proxy: Optional[str],
    project: str,
    group: Optional[str],
    lang: str,
    template: str,
    rule: Optional[str],
    archive: Optional[str],
    svn: Optional[str],
    git: Optional[str],
    user: Optional[str],
    password: Optional[str],
    branch: Optional[str],
    task: Optional[str],
    severity: str,
    output: str,
    get_source: bool,
    poll_interval: float,
    timeout: Optional[float],
    concurrency: int,
    log_level: str,
):
    """
    Scan source code on Codepecker and write the findings report.

    Pass exactly one of --file, --svn, --git, or --task to resume an
    existing scan.
    """
    configure_logging(log_level)

    if not key:
        raise click.UsageError("An API key is required (--key or CODEPECKER_KEY)")

    scan_project = None
    source = None
    if task:
        if archive or svn or git:
            raise click.UsageError("--task cannot be combined with --file, --svn or --git")
    else:
        scan_project = build_project(project, lang, template, group, rule)
        source = build_source(archive, svn, git, user, password, branch)

    config = ScanConfig(
        severity=severity,
        language=lang,
        include_source=get_source,
        output=output,
        poll_interval=poll_interval,
        timeout=timeout,
        max_concurrency=concurrency,
    )

    console.print("\n" + "=" * 80)
    console.print("codepecker - Codepecker Static Analysis Client")
    console.print("=" * 80 + "\n")
    console.print(f"[green]Server:[/green] {escape(url)}")
    if task:
        console.print(f"[green]Task:[/green] {escape(task)}")
    else:
        console.print(f"[green]Project:[/green] {escape(project)} ({escape(lang)}, {template})")
        console.print(f"[green]Source:[/green] {escape(describe_source(source))}")
    console.print(f"[green]Severity:[/green] {severity}")
    console.print(f"[green]Source Snippets:[/green] {'[bold green]Enabled[/bold green]' if get_source else '[dim]Disabled[/dim]'}")
    console.print()

    try:
        report = asyncio.run(run_scan(
            url=url,
            key=key,
            proxy=proxy,
            config=config,
            project=scan_project,
            source=source,
            task_id=task,
        ))

    except KeyboardInterrupt:
        console.print("\n\n[yellow]Scan interrupted by user, no report written[/yellow]")
        sys.exit(1)

    except TimeoutError:
        console.print(f"\n[bold red]Scan timed out after {timeout}s, no report written[/bold red]")
        sys.exit(1)

    except PeckerError as e:
        console.print(f"\n[bold red]Scan failed:[/bold red] {escape(str(e))}")
        sys.exit(1)

    print_summary(report, output)


def build_project(
    name: str,
    language: str,
    template: str,
    group: Optional[str],
    rule: Optional[str],
) -> Project:
    """Validate project options before anything is sent"""
    try:
        return Project(name=name, language=language, template=template, group=group, rule=rule)
    except ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise click.UsageError(f"Invalid project: {messages}")


def build_source(
    archive: Optional[str],
    svn: Optional[str],
    git: Optional[str],
    user: Optional[str],
    password: Optional[str],
    branch: Optional[str],
) -> SubmissionSource:
    """Pick the single submission source given on the command line"""
    chosen = [name for name, value in (("--file", archive), ("--svn", svn), ("--git", git)) if value]
    if len(chosen) != 1:
        raise click.UsageError("Exactly one of --file, --svn, --git (or --task) is required")

    if archive:
        return ArchiveSource.from_path(archive)

    if user is None or password is None:
        raise click.UsageError(f"--user and --password are required with {chosen[0]}")

    return ScmSource(
        remote=ScmKind.SVN if svn else ScmKind.GIT,
        url=svn or git,
        user=user,
        password=password,
        branch=branch,
    )


def describe_source(source: SubmissionSource) -> str:
    if isinstance(source, ArchiveSource):
        return f"archive {source.file_name} ({len(source.content)} bytes)"
    branch = f" @ {source.branch}" if source.branch else ""
    return f"{source.remote.name} {source.url}{branch}"


async def run_scan(
    url: str,
    key: str,
    proxy: Optional[str],
    config: ScanConfig,
    project: Optional[Project],
    source: Optional[SubmissionSource],
    task_id: Optional[str],
) -> Report:
    """Run the pipeline with a live progress line"""
    async with PeckerClient(url, auth=key, proxy=proxy) as client:
        pipeline = ScanPipeline(client, config)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:

            initial = "[cyan]Fetching results..." if task_id else "[cyan]Submitting task..."
            progress_task = progress.add_task(initial, total=None)

            def on_event(event: str, data: dict):
                if event == "task_submitted":
                    progress.update(progress_task, description=f"[cyan]Task {data['task_id']} submitted...")
                elif event == "task_progress":
                    progress.update(progress_task, description=STATUS_DESCRIPTIONS[data["status"]])
                elif event == "task_completed":
                    progress.update(progress_task, description="[cyan]Scan complete, fetching results...")
                elif event == "results_aggregated":
                    progress.update(progress_task, description="[green]Results collected!")

            pipeline.subscribe(on_event)
            return await pipeline.run(project=project, source=source, task_id=task_id)


def print_summary(report: Report, output: str):
    console.print("\n" + "=" * 80)
    console.print(f"[bold]Task:[/bold] {escape(report.task_id)}")
    console.print(f"[bold]Findings at or above {report.severity}:[/bold] {report.problem_count}")

    if report.problems:
        levels = Counter(problem.get("severityLevel") for problem in report.problems)

        table = Table(title="Findings by Severity Level")
        table.add_column("Level", style="cyan", no_wrap=True)
        table.add_column("Count", style="yellow", justify="right")
        for level in sorted(levels, key=lambda value: (not isinstance(value, int), str(value))):
            table.add_row(str(level), str(levels[level]))
        console.print(table)

    console.print(f"\n[green]Results saved to:[/green] {escape(output)}")
    console.print("=" * 80 + "\n")


@cli.command()
def version():
    """Show version information and the backend endpoints used"""
    console.print(f"\n[bold cyan]codepecker v{__version__}[/bold cyan]")
    console.print("[cyan]Codepecker static analysis client[/cyan]\n")

    table = Table(title="Backend Endpoints")
    table.add_column("Endpoint", style="cyan", no_wrap=True)
    table.add_column("Purpose", style="green")

    table.add_row(Endpoint.UPLOAD, "Upload source archive")
    table.add_row(Endpoint.UPLOAD_SCM, "Scan from SVN/Git")
    table.add_row(Endpoint.TASK_STATUS, "Poll task status")
    table.add_row(Endpoint.STATISTICS, "Run statistics")
    table.add_row(Endpoint.TASK_RESULT, "Paged findings")
    table.add_row(Endpoint.SOLUTION, "Remediation text")
    table.add_row(Endpoint.FILE, "Source file content")

    console.print(table)
    console.print()


if __name__ == '__main__':
    cli()
