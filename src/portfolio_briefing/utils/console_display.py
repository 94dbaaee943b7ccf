"""
Rich Console Display Module

Renders the orchestrator's dashboard state in the terminal.
"""

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from portfolio_briefing.models import AnalysisHistoryEntry, ExecutionLogEntry, PortfolioSummary, StockQuote
from portfolio_briefing.orchestrator import Orchestrator
from portfolio_briefing.utils.formatting import format_currency, format_percent, format_timestamp
from portfolio_briefing.utils.logging_config import get_console

__all__ = ["RichConsoleDisplay"]


class RichConsoleDisplay:
    """
    Rich-based terminal display for the dashboard.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or get_console()

    def show_messages(self, orchestrator: Orchestrator) -> None:
        """Print the notice or error slot, whichever is set."""
        state = orchestrator.state
        if state.error:
            self.console.print(f"[failure]✗ {state.error}[/failure]")
        elif state.notice:
            self.console.print(f"[notice]✓ {state.notice}[/notice]")

    def show_stocks(self, stocks: list[str], email: str = "") -> None:
        if not stocks:
            self.console.print("[dim]Watch-list is empty. Add symbols with 'stocks add'.[/dim]")
        else:
            self.console.print(f"📋 Watch-list ({len(stocks)}): [cyan]{', '.join(stocks)}[/cyan]")
        if email:
            self.console.print(f"✉️  Delivery: [cyan]{email}[/cyan]")

    def show_schedule(self, orchestrator: Orchestrator, upcoming_count: int = 5) -> None:
        schedule = orchestrator.state.schedule
        if schedule is None:
            self.console.print("[yellow]Schedule not loaded[/yellow]")
            return

        status_style = "green" if schedule.is_active else "yellow"
        self.console.print(Rule(f"⏰ Schedule [{status_style}]{schedule.status_label}[/]", style="dim"))

        table = Table(show_header=False, border_style="dim", expand=False, pad_edge=False)
        table.add_column("Field", style="dim", no_wrap=True)
        table.add_column("Value")
        table.add_row("Cron", schedule.cron_expression)
        table.add_row("Runs", orchestrator.schedule_description())
        table.add_row("Timezone", schedule.timezone)
        if schedule.next_run_time:
            table.add_row("Next run", format_timestamp(schedule.next_run_time))
        if schedule.last_run_at:
            outcome = ""
            if schedule.last_run_success is not None:
                outcome = " [green]✓[/green]" if schedule.last_run_success else " [red]✗[/red]"
            table.add_row("Last run", f"{format_timestamp(schedule.last_run_at)}{outcome}")
        self.console.print(table)

        runs = orchestrator.upcoming_runs(upcoming_count)
        if runs:
            self.console.print("[bold]Upcoming runs[/bold]")
            for i, run in enumerate(runs, 1):
                self.console.print(f"  {i}. {run}")

    def show_logs(self, logs: list[ExecutionLogEntry]) -> None:
        if not logs:
            self.console.print("[dim]No execution history available yet[/dim]")
            return

        table = Table(
            title="🧾 Execution logs",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
            title_style="bold",
            expand=False,
        )
        table.add_column("Executed", no_wrap=True)
        table.add_column("Result", justify="center", no_wrap=True)
        for log in logs:
            result = "[green]Success[/green]" if log.success else "[red]Failed[/red]"
            table.add_row(format_timestamp(log.executed_at), result)
        self.console.print(table)

    def show_history(self, history: list[AnalysisHistoryEntry], limit: int | None = None) -> None:
        if not history:
            self.console.print("[dim]No analyses yet[/dim]")
            return

        for entry in history[:limit]:
            self.console.print()
            self.show_entry(entry)

    def show_entry(self, entry: AnalysisHistoryEntry) -> None:
        title = f"{format_timestamp(entry.timestamp)} | {len(entry.stocks)} stocks"
        if entry.portfolio_value:
            title += f" | {format_currency(entry.portfolio_value)}"
        self.console.print(Rule(title, style="dim"))
        self.console.print(entry.summary)
        for insight in entry.key_insights:
            self.console.print(f"  • {insight}")
        if entry.stocks:
            self.console.print(f"[dim]{', '.join(entry.stocks)}[/dim]")

    def show_quotes(self, quotes: list[StockQuote], summary: PortfolioSummary | None) -> None:
        if summary:
            change_style = "green" if summary.daily_change >= 0 else "red"
            self.console.print(
                f"💼 Portfolio value [bold]{format_currency(summary.total_value)}[/bold]  "
                f"[{change_style}]{format_currency(summary.daily_change)} "
                f"({format_percent(summary.daily_change_percent)})[/]"
            )
            self.console.print(
                f"   Top gainer [green]{summary.top_gainer.symbol} {format_percent(summary.top_gainer.change_percent)}[/]"
                f" | Top loser [red]{summary.top_loser.symbol} {format_percent(summary.top_loser.change_percent)}[/]"
            )
        if not quotes:
            return

        table = Table(show_header=True, header_style="bold cyan", border_style="dim", expand=False)
        table.add_column("Symbol", no_wrap=True)
        table.add_column("Price", justify="right")
        table.add_column("Change", justify="right")
        table.add_column("Volume", justify="right")
        for q in quotes:
            style = "green" if q.change >= 0 else "red"
            table.add_row(
                q.symbol,
                format_currency(q.price),
                f"[{style}]{q.change:+.2f} ({format_percent(q.change_percent)})[/]",
                f"{q.volume / 1_000_000:.2f}M",
            )
        self.console.print(table)

    def show_dashboard(self, orchestrator: Orchestrator, upcoming_count: int = 5) -> None:
        """Full dashboard: portfolio, latest briefing, schedule and recent logs."""
        state = orchestrator.state
        self.console.print()
        self.console.rule("[banner]Stock Portfolio Analyst[/banner]", style="cyan")
        if state.sample_mode:
            self.console.print("[banner.dim]Sample data[/banner.dim]")

        self.show_quotes(orchestrator.display_quotes(), orchestrator.display_summary())
        self.show_stocks(orchestrator.display_stocks(), "" if state.sample_mode else state.portfolio.email)

        latest = orchestrator.display_last_analysis()
        if latest is None:
            history = orchestrator.display_history()
            latest = history[0] if history else None
        if latest is not None:
            self.console.print()
            self.console.print("[bold]Latest briefing[/bold]")
            self.show_entry(latest)

        self.console.print()
        self.show_schedule(orchestrator, upcoming_count)
        self.console.print()
        self.show_logs(state.logs)
        self.show_messages(orchestrator)
