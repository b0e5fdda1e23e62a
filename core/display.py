"""Console presentation for the check-in bot.

Renders the startup banner, the live "next cycle in" countdown and the
end-of-cycle summary table using Rich.  Nothing here affects control flow;
log output goes through :mod:`logging` independently.
"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.utils import format_hms
from rewards.results import CycleSummary

BANNER_TITLE = "DIP Daily Check-in Bot"
BANNER_SUBTITLE = "Automated daily reward claims for multiple accounts"


def display_banner(console: Optional[Console] = None) -> None:
    """Print the startup banner."""
    console = console or Console()
    body = Text(justify="center")
    body.append(f"{BANNER_TITLE}\n", style="bold cyan")
    body.append(BANNER_SUBTITLE, style="dim")
    console.print(Panel(body, border_style="cyan", box=box.DOUBLE, expand=False))


def render_countdown(remaining_seconds: float) -> Text:
    """Build the single-line countdown text, e.g. ``Next cycle in: 23:59:59``."""
    text = Text()
    text.append("Next cycle in: ", style="bold blue")
    text.append(format_hms(remaining_seconds), style="bold yellow")
    return text


class CountdownDisplay:
    """In-place countdown line backed by :class:`rich.live.Live`.

    Usage::

        with CountdownDisplay(console) as display:
            display.update(remaining)
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._live: Optional[Live] = None

    def __enter__(self) -> "CountdownDisplay":
        self._live = Live(
            render_countdown(0),
            console=self.console,
            refresh_per_second=4,
            transient=True,
        )
        self._live.__enter__()
        return self

    def update(self, remaining_seconds: float) -> None:
        if self._live is not None:
            self._live.update(render_countdown(remaining_seconds))

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._live is not None:
            self._live.__exit__(exc_type, exc, tb)
            self._live = None


def build_summary_table(summary: CycleSummary) -> Table:
    """Tabulate a cycle's account and token counts."""
    table = Table(title="Cycle Summary", box=box.ROUNDED)
    table.add_column("Scope", style="bold")
    table.add_column("Success", justify="right", style="green")
    table.add_column("Cooldown", justify="right", style="yellow")
    table.add_column("Error", justify="right", style="red")
    table.add_column("Total", justify="right")

    table.add_row(
        "Accounts",
        str(summary.success_accounts),
        str(summary.cooldown_accounts),
        str(summary.error_accounts),
        str(summary.total_accounts),
    )
    token_errors = summary.error_tokens + summary.identify_failed_tokens
    table.add_row(
        "Tokens",
        str(summary.success_tokens),
        str(summary.cooldown_tokens),
        str(token_errors),
        str(summary.total_tokens),
    )
    return table
