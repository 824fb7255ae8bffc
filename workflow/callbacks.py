"""Workflow progress callbacks for monitoring and real-time reporting."""

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class WorkflowCallback(Protocol):
    """Protocol for workflow progress callbacks.

    Implement this protocol to hook into the workflow execution lifecycle.
    """

    def on_node_exit(self, node: str, state: dict) -> None:
        """Called after a node finishes with that node's state update."""
        ...

    def on_error(self, node: str, error: str) -> None:
        """Called when a node raises; the error still propagates to the caller."""
        ...

    def on_workflow_complete(self, final_state: dict) -> None:
        """Called when the graph returns, whether suspended or finished."""
        ...


class LoggingCallback:
    """Lightweight callback that logs progress to the standard logger."""

    def on_node_exit(self, node: str, state: dict) -> None:
        logger.debug("← node: %s", node)

    def on_error(self, node: str, error: str) -> None:
        logger.error("Workflow error in '%s': %s", node, error)

    def on_workflow_complete(self, final_state: dict) -> None:
        logger.info(
            "Workflow returned at step=%s (needs_human_input=%s, is_complete=%s)",
            final_state.get("current_step"),
            final_state.get("needs_human_input", False),
            final_state.get("is_complete", False),
        )


class RichProgressCallback:
    """Progress callback that renders a Rich live progress display in the terminal."""

    _NODE_LABELS: dict[str, str] = {
        "create_brief": "Creating marketing brief",
        "generate_themes": "Researching whitepaper and generating themes",
        "await_theme_selection": "Waiting for theme selection",
        "research_theme": "Researching selected theme",
        "generate_content": "Drafting content",
        "edit_content": "Editing content",
        "finish": "Finishing",
    }

    # astream fires after each node completes, so show the step entering next.
    _ENTERING_LABEL: dict[str, str] = {
        "create_brief": "Researching whitepaper and generating themes",
        "generate_themes": "Preparing theme selection",
        "research_theme": "Drafting content",
        "generate_content": "Editing content",
    }

    def __init__(self, console=None, first_node: str = "create_brief"):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
            first_node: Node the run enters first, shown before any event.
        """
        self._console = console
        self._first_node = first_node
        self._progress = None
        self._task_id = None
        self._completed = 0

    def start(self):
        """Start the progress display. Call before running the workflow."""
        from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

        console = self._console
        if console is None:
            from rich.console import Console
            console = Console()

        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        )
        self._progress.start()
        label = self._NODE_LABELS.get(self._first_node, self._first_node)
        self._task_id = self._progress.add_task(f"[dim]{label}...[/]", total=None)

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def on_node_exit(self, node: str, state: dict) -> None:
        self._completed += 1
        if not self._progress:
            return
        label = self._ENTERING_LABEL.get(node, self._NODE_LABELS.get(node, node))
        self._progress.update(self._task_id, description=f"[dim]{label}...[/]")

    def on_error(self, node: str, error: str) -> None:
        if not self._progress:
            return
        self._progress.update(
            self._task_id,
            description=f"[red]Error ({node}): {error[:80]}[/]",
        )

    def on_workflow_complete(self, final_state: dict) -> None:
        if not self._progress:
            return
        if final_state.get("needs_human_input"):
            description = "[bold yellow]Themes ready, waiting for selection[/]"
        elif final_state.get("is_complete"):
            description = f"[bold green]Done ({self._completed} stages)[/]"
        else:
            description = f"[yellow]Stopped at {final_state.get('current_step', '?')}[/]"
        self._progress.update(self._task_id, description=description)
