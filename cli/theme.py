"""Unified Rich theme and reusable UI helper functions for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

CONTENT_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "theme.id": "cyan",
    "theme.title": "bold",
})


def get_console() -> Console:
    """Return a Console instance with the content theme applied."""
    return Console(theme=CONTENT_THEME)


def app_header(title: str = "contentkit") -> Rule:
    """Return a Rule element for the application header banner."""
    return Rule(title=f"[bold]{title}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "New content run").
        fields: Ordered dict of label -> value pairs.
    """
    lines = []
    for label, value in fields.items():
        lines.append(f"  [stat.label]{label}:[/] [stat.value]{value}[/]")
    body = "\n".join(lines)
    return Panel(body, title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def theme_table(themes: list[dict]) -> Table:
    """Build a Rich Table of candidate themes for selection.

    Args:
        themes: Theme dicts with id, title, description and why_it_works.
    """
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, show_lines=True, padding=(0, 1))
    table.add_column("ID", style="theme.id", no_wrap=True)
    table.add_column("Theme", style="theme.title")
    table.add_column("Why it works")

    for t in themes:
        reasons = "\n".join(f"- {r}" for r in t.get("why_it_works", []))
        table.add_row(
            t.get("id", "?"),
            f"{t.get('title', '')}\n[muted]{t.get('description', '')}[/]",
            reasons,
        )
    return table


def output_summary_panel(output: dict) -> Panel:
    """Return a Panel summarizing a final content output.

    Args:
        output: ``FinalContentOutput`` dumped to a dict.
    """
    meta = output.get("generation_metadata", {})
    status = output.get("workflow_state", {})
    theme = (output.get("selected_theme") or {}).get("title", "-")

    counts = []
    for label, key, items in (
        ("Articles", "article", "articles"),
        ("LinkedIn", "linkedin_posts", "posts"),
        ("Social", "social_posts", "posts"),
    ):
        channel = output.get(key) or {}
        counts.append(f"[stat.label]{label}:[/] [stat.value]{len(channel.get(items, []))}[/]")

    scores = ", ".join(
        f"{channel} {score:.1f}"
        for channel, score in meta.get("content_quality_scores", {}).items()
        if score is not None
    ) or "-"

    body = (
        f"  [stat.label]Theme:[/] {theme}\n"
        f"  {'  [muted]|[/]  '.join(counts)}\n"
        f"  [stat.label]Step:[/] {status.get('current_step', '-')}  "
        f"[muted]|[/]  [stat.label]Complete:[/] {status.get('is_complete', False)}  "
        f"[muted]|[/]  [stat.label]Queries:[/] {meta.get('search_queries_issued', 0)}\n"
        f"  [stat.label]Quality:[/] {scores}"
    )
    return Panel(body, title="[bold]Content output[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))
