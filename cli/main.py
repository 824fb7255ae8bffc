"""CLI entry point: ContentKit content generation workflow.

Usage:
  contentkit generate ...         brief + themes, then pause for selection
  contentkit select RUN THEME     research, draft and edit with the chosen theme
  contentkit regenerate RUN       replace the 3 themes with a fresh batch
  contentkit show RUN             print the assembled output
  contentkit runs                 list stored runs
  contentkit prompts list|seed    inspect or seed prompt configuration
"""

import asyncio
import logging
import sys
import uuid
from typing import Optional

import click
from rich.table import Table

from cli.theme import (
    get_console,
    app_header,
    command_panel,
    success_panel,
    theme_table,
    output_summary_panel,
)
from config.exceptions import ContentKitError
from config.logging_config import setup_logging
from config.settings import Settings
from models.database import Database
from models.enums import CtaType, StepId
from models.run import WorkflowRun
from tools.config_store import DatabaseConfigStore, PromptFileConfigStore, build_config_store
from workflow.callbacks import RichProgressCallback
from workflow.graph import MAX_COUNTS, ContentWorkflow
from workflow.output import build_final_output
from workflow.serialization import dump_state, load_state

console = get_console()
logger = logging.getLogger(__name__)


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    settings = Settings()
    setup_logging(level=level, log_dir=settings.log_dir, console_enabled=verbose)


def _build_workflow(settings: Settings, db: Database) -> ContentWorkflow:
    return ContentWorkflow(settings=settings, db=db)


def _run(coro, timeout: Optional[float]):
    """Run a workflow coroutine under an optional overall deadline."""
    if timeout:
        coro = asyncio.wait_for(coro, timeout)
    return asyncio.run(coro)


def _save_run(db: Database, run_id: str, state: dict, error: Optional[str] = None) -> None:
    db.save_run(WorkflowRun(
        run_id=run_id,
        whitepaper_id=state.get("selected_whitepaper_id") or "",
        current_step=state.get("current_step", ""),
        needs_human_input=state.get("needs_human_input", False),
        is_complete=state.get("is_complete", False),
        state_json=dump_state(state),
        error=error,
    ))


def _load_run(db: Database, run_id: str) -> tuple[WorkflowRun, dict]:
    run = db.get_run(run_id)
    if run is None:
        console.print(f"[error]Run not found: {run_id}[/]")
        sys.exit(1)
    return run, load_state(run.state_json)


def _run_step(db: Database, run_id: str, state: dict, coro, timeout: Optional[float], first_node: str) -> dict:
    """Run one workflow call with progress display; record failures on the run."""
    cb = RichProgressCallback(console=console, first_node=first_node)
    try:
        cb.start()
        try:
            return _run(coro(cb), timeout)
        finally:
            cb.stop()
    except KeyboardInterrupt:
        console.print("\n[warning]Interrupted[/]")
        sys.exit(130)
    except asyncio.TimeoutError:
        message = f"Timed out after {timeout:g}s"
        _save_run(db, run_id, state, error=message)
        console.print(f"\n[error]{message}[/]")
        sys.exit(1)
    except ContentKitError as e:
        _save_run(db, run_id, state, error=str(e))
        console.print(f"\n[error]Workflow failed: {e}[/]")
        logger.exception("Workflow failed")
        sys.exit(1)
    except Exception as e:
        _save_run(db, run_id, state, error=str(e))
        console.print(f"\n[error]Unexpected failure: {e}[/]")
        logger.exception("Workflow failed")
        sys.exit(1)


def _print_usage(workflow: ContentWorkflow) -> None:
    usage = workflow.resources.llm.get_usage_summary()
    console.print(f"[muted]LLM calls: {usage['total_calls']} ({usage['failed_calls']} failed)[/]")


def _print_themes(run_id: str, state: dict) -> None:
    themes = state.get("generated_themes") or []
    if not themes:
        console.print(f"[warning]No themes were generated (step: {state.get('current_step')}).[/]")
        return
    console.print(theme_table(themes))
    console.print()
    console.print(
        f"Next: [info]contentkit select {run_id} <THEME_ID>[/]  "
        f"[muted]or[/]  [info]contentkit regenerate {run_id}[/]"
    )


_timeout_option = click.option(
    "--timeout", "-t", default=None, type=float,
    help="Overall deadline in seconds for this workflow call",
)


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, verbose):
    """ContentKit: whitepaper-driven marketing content generation.

    \b
    Typical flow:
      contentkit generate -w wp-123 -c "We sell ..." --articles 1
      contentkit select <RUN_ID> <THEME_ID>
      contentkit show <RUN_ID>
    """
    _init_logging(verbose)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# generate / select / regenerate
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--whitepaper", "-w", required=True, help="Whitepaper ID to research")
@click.option("--context", "-c", "business_context", required=True, help="Business context")
@click.option("--audience", "-a", default="", help="Target audience")
@click.option("--goals", "-g", default="", help="Marketing goals")
@click.option("--articles", default=1,
              type=click.IntRange(0, MAX_COUNTS["articles_count"]),
              help="Articles to write (default 1)")
@click.option("--linkedin", default=4,
              type=click.IntRange(0, MAX_COUNTS["linkedin_posts_count"]),
              help="LinkedIn posts to write (default 4)")
@click.option("--social", default=8,
              type=click.IntRange(0, MAX_COUNTS["social_posts_count"]),
              help="Social posts to write (default 8)")
@click.option("--cta-type", type=click.Choice([c.value for c in CtaType]),
              default=CtaType.DOWNLOAD_WHITEPAPER.value, help="Call to action type")
@click.option("--cta-url", default=None, help="Call to action URL")
@_timeout_option
def generate(whitepaper, business_context, audience, goals, articles, linkedin, social,
             cta_type, cta_url, timeout):
    """Create the brief and 3 themes, then pause for theme selection.

    Example:
      contentkit generate -w wp-123 -c "B2B data platform" --linkedin 2 --social 0
    """
    settings = Settings()
    db = Database(settings.sqlite_db_path)
    workflow = _build_workflow(settings, db)
    run_id = uuid.uuid4().hex[:12]

    console.print(app_header())
    console.print()
    console.print(command_panel("New content run", {
        "Run": run_id,
        "Whitepaper": whitepaper,
        "Content": f"{articles} article(s), {linkedin} LinkedIn, {social} social",
        "CTA": f"{cta_type}{f' ({cta_url})' if cta_url else ''}",
    }))
    console.print()

    initial_state = {
        "business_context": business_context,
        "target_audience": audience,
        "marketing_goals": goals,
        "articles_count": articles,
        "linkedin_posts_count": linkedin,
        "social_posts_count": social,
        "cta_type": cta_type,
        "cta_url": cta_url,
        "selected_whitepaper_id": whitepaper,
    }
    final_state = _run_step(
        db, run_id, initial_state,
        lambda cb: workflow.start(initial_state, callback=cb),
        timeout, "create_brief",
    )
    _save_run(db, run_id, final_state)
    _print_usage(workflow)

    console.print()
    console.print(app_header("Themes"))
    _print_themes(run_id, final_state)


@cli.command()
@click.argument("run_id")
@click.argument("theme_id")
@_timeout_option
def select(run_id, theme_id, timeout):
    """Resume a paused run with THEME_ID and finish it."""
    settings = Settings()
    db = Database(settings.sqlite_db_path)
    workflow = _build_workflow(settings, db)
    _, state = _load_run(db, run_id)

    console.print(app_header())
    console.print()

    final_state = _run_step(
        db, run_id, state,
        lambda cb: workflow.resume(state, theme_id, callback=cb),
        timeout, "research_theme",
    )
    _save_run(db, run_id, final_state)
    _print_usage(workflow)

    output = build_final_output(final_state).model_dump(mode="json")
    console.print()
    console.print(output_summary_panel(output))
    console.print(f"\nFull output: [info]contentkit show {run_id} --json[/]")


@cli.command()
@click.argument("run_id")
@_timeout_option
def regenerate(run_id, timeout):
    """Retire the current themes of RUN_ID and generate 3 new ones."""
    settings = Settings()
    db = Database(settings.sqlite_db_path)
    workflow = _build_workflow(settings, db)
    _, state = _load_run(db, run_id)

    console.print(app_header())
    console.print()

    final_state = _run_step(
        db, run_id, state,
        lambda cb: workflow.regenerate_themes(state, callback=cb),
        timeout, "generate_themes",
    )
    _save_run(db, run_id, final_state)
    _print_usage(workflow)

    console.print()
    console.print(app_header("Themes"))
    _print_themes(run_id, final_state)


# ---------------------------------------------------------------------------
# show / runs
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("run_id")
@click.option("--json", "as_json", is_flag=True, help="Print the full output as JSON")
def show(run_id, as_json):
    """Print the assembled output of RUN_ID."""
    settings = Settings()
    db = Database(settings.sqlite_db_path)
    run, state = _load_run(db, run_id)
    output = build_final_output(state)

    if as_json:
        click.echo(output.model_dump_json(indent=2))
        return

    console.print(app_header(f"Run {run_id}"))
    console.print()
    if run.error:
        console.print(f"[error]Last failure: {run.error}[/]\n")
    if state.get("needs_human_input"):
        _print_themes(run_id, state)
        return
    console.print(output_summary_panel(output.model_dump(mode="json")))


@cli.command()
@click.option("--limit", "-l", default=20, type=click.IntRange(min=1), help="Maximum runs to list")
def runs(limit):
    """List stored runs, most recently updated first."""
    settings = Settings()
    db = Database(settings.sqlite_db_path)
    stored = db.list_runs(limit=limit)
    if not stored:
        console.print("[warning]No runs yet. Start one with [info]contentkit generate[/].[/]")
        return

    table = Table(title="Runs", show_lines=False, border_style="dim")
    table.add_column("Run", style="accent")
    table.add_column("Whitepaper")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Updated", style="muted")

    for r in stored:
        if r.error:
            status = "[error]failed[/]"
        elif r.is_complete:
            status = "[success]complete[/]"
        elif r.needs_human_input:
            status = "[warning]awaiting theme[/]"
        else:
            status = "[muted]stopped[/]"
        table.add_row(r.run_id, r.whitepaper_id, r.current_step, status, str(r.updated_at or ""))

    console.print(table)


# ---------------------------------------------------------------------------
# prompts
# ---------------------------------------------------------------------------

@cli.group()
def prompts():
    """Inspect or seed per-step prompt configuration."""


@prompts.command(name="list")
def prompts_list():
    """List the configuration each step would load."""
    settings = Settings()
    db = Database(settings.sqlite_db_path)
    store = build_config_store(settings, db)

    table = Table(title=f"Prompt configuration ({settings.prompt_source})", border_style="dim")
    table.add_column("Step", style="bold")
    table.add_column("Model")
    table.add_column("Sections", style="muted")

    for step in StepId:
        try:
            config = store.load(step.value)
        except ContentKitError as e:
            table.add_row(step.value, "[error]missing[/]", str(e))
            continue
        table.add_row(step.value, config.model_name, ", ".join(sorted(config.sections)) or "-")

    console.print(table)


@prompts.command(name="seed")
def prompts_seed():
    """Copy the bundled prompt files into the database."""
    settings = Settings()
    db = Database(settings.sqlite_db_path)
    try:
        count = DatabaseConfigStore(db).seed_from(PromptFileConfigStore(settings))
    except ContentKitError as e:
        console.print(f"[error]Seeding failed: {e}[/]")
        sys.exit(1)
    console.print(success_panel("Prompts seeded", f"{count} step configurations written to {settings.sqlite_db_path}"))
    if settings.prompt_source != "database":
        console.print("[muted]Set PROMPT_SOURCE=database to run from the seeded prompts.[/]")


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
