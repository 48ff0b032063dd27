# RepoSync Console Output
# Rich-based console output for user-friendly display

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from reposync.config.schema import MirrorConfig
from reposync.sync.actions import EntryStatus, ReportEntry, SynchronizationReport


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for synchronization reports.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(force_terminal=colored, no_color=not colored)

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{escape(message)}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{escape(message)}[/blue]")

    def print_report(self, report: SynchronizationReport) -> None:
        """
        Print every report entry as a table.

        Args:
            report: Report to display.
        """
        if not report.entries:
            self._console.print("[dim]No changes detected[/dim]")
            return

        title = "Planned Changes (dry run)" if report.test else "Changes"
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Category", style="magenta")
        table.add_column("Decision")
        table.add_column("Direction", justify="center")
        table.add_column("Resource", style="cyan", overflow="fold")
        table.add_column("Status")
        if self.verbose or report.has_failures:
            table.add_column("Reason", style="dim")

        for entry in report.entries:
            row = [
                entry.category.value,
                entry.decision.value.replace("_", " "),
                entry.direction,
                escape(entry.uri),
                self._format_status(entry),
            ]
            if self.verbose or report.has_failures:
                row.append(escape(entry.error or entry.reason))
            table.add_row(*row)

        self._console.print()
        self._console.print(table)
        self._console.print()

    def _format_status(self, entry: ReportEntry) -> str:
        """Get colored status label for an entry."""
        styles = {
            EntryStatus.APPLIED: "[green]applied[/green]",
            EntryStatus.WOULD_APPLY: "[yellow]would apply[/yellow]",
            EntryStatus.FAILED: "[red]failed[/red]",
        }
        return styles[entry.status]

    def print_summary(self, report: SynchronizationReport) -> None:
        """
        Print report summary.

        Args:
            report: Report to summarize.
        """
        # Choose wording based on dry run
        status_text = "Dry run completed" if report.test else "Synchronization completed"
        if report.cancelled:
            status_text = "Dry run cancelled" if report.test else "Synchronization cancelled"

        counts = ", ".join(
            f"{category.value}: {count}" for category, count in sorted(report.counts_by_category().items())
        )
        body = (
            f"Applied: {len(report.applied)}, would apply: {len(report.would_apply)}, "
            f"failed: {len(report.failed)}\n"
            f"By category: {counts or 'none'}"
        )

        if report.has_failures:
            self._console.print(
                Panel(f"[red]{status_text} with errors[/red]\n{body}", title="Summary", border_style="red")
            )
        else:
            border = "yellow" if report.cancelled else "green"
            self._console.print(Panel(f"[green]{status_text}[/green]\n{body}", title="Summary", border_style=border))

    def print_config_summary(self, config_path: str, config: MirrorConfig) -> None:
        """Print configuration summary."""
        resource, content, metadata = config.effective_resolutions()
        self._console.print(
            Panel(
                f"Config: {escape(config_path)}\n"
                f"Source: {escape(config.source.resource_uri())}\n"
                f"Destination: {escape(config.destination.resource_uri())}\n"
                f"Resolutions: resource={resource.value}, content={content.value}, metadata={metadata.value}",
                title="RepoSync Configuration",
                border_style="blue",
            )
        )


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
