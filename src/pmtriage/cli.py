"""Command-line interface for pmtriage.

Provides commands for configuration validation, classification, thread
matching and work-item grouping against CSV exports of the tracking sheets.

Usage:
    python -m pmtriage validate-config
    python -m pmtriage classify --subject "Turbine bolt" --sender ops@acme.com
    python -m pmtriage match --in-reply-to "<abc@mail>" --conversation-id AAQk
    python -m pmtriage group --in-reply-to "<abc@mail>" --expanded
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pmtriage.config import get_config_path, load_config, validate_config_file
from pmtriage.config_schema import AppConfig
from pmtriage.core.errors import ConfigLoadError, ConfigValidationError, SourceLoadError
from pmtriage.core.logging import configure_logging, get_logger

console = Console()
logger = get_logger(__name__)


def _load_app_config(ctx: click.Context) -> AppConfig:
    """Load config, falling back to defaults when no file exists at the default path.

    An explicitly requested file that is missing or invalid is an error. Unless
    --debug was given, logging is reconfigured from the loaded config.
    """
    config_path = ctx.obj.get("config_path")
    path = config_path or get_config_path()
    if config_path is None and not path.exists():
        logger.debug("No configuration file, using defaults", path=str(path))
        return AppConfig()

    try:
        config = load_config(path)
    except (ConfigLoadError, ConfigValidationError) as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(1)

    if not ctx.obj.get("debug"):
        configure_logging(log_level=config.logging.level, json_output=config.logging.json_output)
    return config


def _source_error(e: SourceLoadError) -> None:
    console.print(
        f"[red]Source error:[/red] {e}\n\n"
        "Export the sheet as CSV and pass its path, or set it under [cyan]sources[/cyan] "
        "in config.yaml."
    )
    sys.exit(1)


@click.group()
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file (default: config/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, config_path: Path | None) -> None:
    """pmtriage - classify and group messages for project tracking."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["debug"] = debug
    log_level = "DEBUG" if debug else "WARNING"
    configure_logging(log_level=log_level, json_output=False)


@cli.command("validate-config")
@click.pass_context
def validate_config(ctx: click.Context) -> None:
    """Validate the configuration file.

    Checks that config.yaml exists and passes Pydantic schema validation.
    Reports specific errors for invalid fields.
    """
    config_path = ctx.obj.get("config_path")
    console.print(f"Validating config: [cyan]{config_path or get_config_path()}[/cyan]")

    is_valid, message = validate_config_file(config_path)

    if is_valid:
        console.print(f"\n[green]✓[/green] {message}")
        sys.exit(0)
    else:
        console.print(f"\n[red]✗[/red] {message}")
        sys.exit(1)


@cli.command("classify")
@click.option("--subject", default="", help="Message subject")
@click.option("--body", default="", help="Message body text")
@click.option("--sender", default="", help="Sender address")
@click.option("--to", "to_recipients", default="", help="To recipients, ';'-separated")
@click.option(
    "--rules",
    "rules_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Rules CSV (default: sources.rules_path)",
)
@click.pass_context
def classify(
    ctx: click.Context,
    subject: str,
    body: str,
    sender: str,
    to_recipients: str,
    rules_path: Path | None,
) -> None:
    """Suggest a project and package for a message."""
    from pmtriage.classifier.text_classifier import TextClassifier
    from pmtriage.sources.tabular import load_rule_store

    config = _load_app_config(ctx)
    try:
        store = load_rule_store(rules_path or Path(config.sources.rules_path), config.scoring)
    except SourceLoadError as e:
        _source_error(e)

    result = TextClassifier(store, scoring=config.scoring).classify(
        subject, body, sender, to_recipients
    )

    if not result.is_ambiguous:
        console.print(f"Project: [cyan]{escape(result.suggested_parent_id)}[/cyan]")
        console.print(f"Package: [cyan]{escape(result.suggested_item_id or '-')}[/cyan]")
        return

    console.print(f"[yellow]Ambiguous:[/yellow] {result.ambiguity_reason}")
    table = Table(title="Tied candidates")
    table.add_column("Level")
    table.add_column("Name", style="cyan")
    table.add_column("Score", justify="right")
    for candidate in result.candidates:
        table.add_row(candidate.type.value, escape(candidate.name), str(candidate.score))
    console.print(table)


@cli.command("match")
@click.option("--in-reply-to", default="", help="In-Reply-To message id")
@click.option("--conversation-id", default="", help="Conversation/thread id")
@click.option(
    "--items",
    "items_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Work items CSV (default: sources.work_items_path)",
)
@click.pass_context
def match(
    ctx: click.Context,
    in_reply_to: str,
    conversation_id: str,
    items_path: Path | None,
) -> None:
    """Find the open work item a message directly belongs to."""
    from pmtriage.engine.thread_matcher import ThreadMatcher
    from pmtriage.engine.work_items import MessageIdentity
    from pmtriage.sources.tabular import load_work_items

    config = _load_app_config(ctx)
    try:
        items = load_work_items(items_path or Path(config.sources.work_items_path), config.sources)
    except SourceLoadError as e:
        _source_error(e)

    identity = MessageIdentity(in_reply_to=in_reply_to, conversation_id=conversation_id)
    found = ThreadMatcher().find_match(identity, items)

    if found is None:
        console.print("[yellow]No match[/yellow]")
        return

    console.print(
        f"[green]{found.tier.value.capitalize()} match:[/green] "
        f"#{escape(found.item.id)} {escape(found.item.display_label())}"
    )


@cli.command("group")
@click.option("--message-id", default="", help="The message's own Message-ID")
@click.option("--in-reply-to", default="", help="In-Reply-To message id")
@click.option("--conversation-id", default="", help="Conversation/thread id")
@click.option("--package", "package_context", default="", help="Package context")
@click.option("--project", "project_context", default="", help="Project context")
@click.option(
    "--items",
    "items_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Work items CSV (default: sources.work_items_path)",
)
@click.option("--expanded", is_flag=True, help="Show project and other sections")
@click.pass_context
def group(
    ctx: click.Context,
    message_id: str,
    in_reply_to: str,
    conversation_id: str,
    package_context: str,
    project_context: str,
    items_path: Path | None,
    expanded: bool,
) -> None:
    """Print the categorized work-item list for a message."""
    from pmtriage.engine.grouping import EntryKind, GroupingEngine, build_selection_list
    from pmtriage.engine.work_items import MessageIdentity
    from pmtriage.sources.tabular import load_work_items

    config = _load_app_config(ctx)
    try:
        items = load_work_items(items_path or Path(config.sources.work_items_path), config.sources)
    except SourceLoadError as e:
        _source_error(e)

    identity = MessageIdentity(
        message_id=message_id,
        in_reply_to=in_reply_to,
        conversation_id=conversation_id,
    )
    result = GroupingEngine(config.linking).group(
        items, identity, package_context=package_context, project_context=project_context
    )

    for entry in build_selection_list(result, expanded=expanded):
        if entry.kind is EntryKind.HEADER:
            console.print(f"\n[bold]{escape(entry.label)}[/bold]")
        elif entry.kind is EntryKind.MORE:
            console.print(f"[dim]{entry.label}[/dim]")
        else:
            console.print(f"  #{escape(entry.item.id)} {escape(entry.label)}")


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
