"""
===================================
Portfolio Briefing - command line entry point
===================================

Usage:
    portfolio-briefing stocks add AAPL MSFT
    portfolio-briefing email set me@example.com
    portfolio-briefing analyze
    portfolio-briefing schedule toggle
    portfolio-briefing dashboard --sample
    python -m portfolio_briefing --debug schedule logs
"""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import click

from portfolio_briefing.config import Config, get_config, get_config_safe
from portfolio_briefing.dependencies import build_orchestrator
from portfolio_briefing.infrastructure import aiohttp_session_manager
from portfolio_briefing.orchestrator import Orchestrator
from portfolio_briefing.utils.console_display import RichConsoleDisplay
from portfolio_briefing.utils.logging_config import get_console, setup_logging

logger = logging.getLogger(__name__)


@dataclass
class CliContext:
    config: Config
    ephemeral: bool
    display: RichConsoleDisplay

    def orchestrator(self) -> Orchestrator:
        return build_orchestrator(self.config, ephemeral=self.ephemeral)


def _finish(ctx: CliContext, orchestrator: Orchestrator) -> None:
    """Print the message slots and exit non-zero when the error slot is set."""
    ctx.display.show_messages(orchestrator)
    if orchestrator.state.error:
        sys.exit(1)


def _run_local(ctx: CliContext, action: Callable[[Orchestrator], object]) -> Orchestrator:
    """Run an action that only touches the preference store."""
    orchestrator = ctx.orchestrator()
    orchestrator.load()
    action(orchestrator)
    return orchestrator


def _run_remote(
    ctx: CliContext,
    action: Callable[[Orchestrator], Awaitable[object]] | None = None,
    fetch_schedule: bool = True,
) -> Orchestrator:
    """Run an action that needs the remote services inside one session."""
    orchestrator = ctx.orchestrator()
    config = ctx.config

    async def _main() -> None:
        async with aiohttp_session_manager(
            timeout=config.system.http_timeout,
            api_key=config.service.service_api_key,
        ):
            try:
                if fetch_schedule:
                    await orchestrator.initialize()
                else:
                    orchestrator.load()
                if action is not None:
                    await action(orchestrator)
                await orchestrator.wait_for_pending()
            finally:
                await orchestrator.close()

    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)
    return orchestrator


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug output and the debug log file")
@click.option("--ephemeral", is_flag=True, help="Keep preferences in memory for this run only")
@click.pass_context
def cli(ctx: click.Context, debug: bool, ephemeral: bool) -> None:
    """Portfolio watch-list and scheduled briefing dashboard."""
    config, errors = get_config_safe()
    if config is None:
        console = get_console()
        console.print("\n[bold yellow]⚠️ Configuration could not be loaded[/bold yellow]")
        for error in errors:
            console.print(f"  - {error}")
        ctx.exit(1)

    config = get_config()
    setup_logging(debug=debug or config.system.debug, log_dir=config.log_dir, level=config.logging.log_level)
    for warning in config.validate_config():
        logger.debug(warning)

    ctx.obj = CliContext(config=config, ephemeral=ephemeral, display=RichConsoleDisplay())


# ==========================================
# Watch-list
# ==========================================


@cli.group()
def stocks() -> None:
    """Manage the watch-list."""


@stocks.command("add")
@click.argument("symbols", nargs=-1, required=True)
@click.pass_obj
def stocks_add(ctx: CliContext, symbols: tuple[str, ...]) -> None:
    """Add SYMBOLS to the watch-list."""

    def _add(orchestrator: Orchestrator) -> None:
        for symbol in symbols:
            orchestrator.add_stock(symbol)
            if orchestrator.state.error:
                break

    orchestrator = _run_local(ctx, _add)
    ctx.display.show_stocks(orchestrator.state.portfolio.stocks)
    _finish(ctx, orchestrator)


@stocks.command("remove")
@click.argument("symbols", nargs=-1, required=True)
@click.pass_obj
def stocks_remove(ctx: CliContext, symbols: tuple[str, ...]) -> None:
    """Remove SYMBOLS from the watch-list."""

    def _remove(orchestrator: Orchestrator) -> None:
        for symbol in symbols:
            orchestrator.remove_stock(symbol)
            if orchestrator.state.error:
                break

    orchestrator = _run_local(ctx, _remove)
    ctx.display.show_stocks(orchestrator.state.portfolio.stocks)
    _finish(ctx, orchestrator)


@stocks.command("list")
@click.pass_obj
def stocks_list(ctx: CliContext) -> None:
    """Show the watch-list and delivery address."""
    orchestrator = _run_local(ctx, lambda o: None)
    ctx.display.show_stocks(orchestrator.state.portfolio.stocks, orchestrator.state.portfolio.email)


# ==========================================
# Delivery address
# ==========================================


@cli.group()
def email() -> None:
    """Manage the delivery address."""


@email.command("set")
@click.argument("address")
@click.pass_obj
def email_set(ctx: CliContext, address: str) -> None:
    """Store ADDRESS as the delivery address."""
    orchestrator = _run_local(ctx, lambda o: o.save_email(address))
    _finish(ctx, orchestrator)


@email.command("show")
@click.pass_obj
def email_show(ctx: CliContext) -> None:
    """Show the delivery address."""
    orchestrator = _run_local(ctx, lambda o: None)
    address = orchestrator.state.portfolio.email
    ctx.display.console.print(address if address else "[dim]No delivery address set[/dim]")


# ==========================================
# Analysis
# ==========================================


@cli.command()
@click.pass_obj
def analyze(ctx: CliContext) -> None:
    """Run an analysis of the watch-list now and email the briefing."""
    with get_console().status("Analyzing portfolio..."):
        orchestrator = _run_remote(ctx, lambda o: o.run_analysis_now(), fetch_schedule=False)
    if orchestrator.state.last_analysis is not None:
        ctx.display.show_entry(orchestrator.state.last_analysis)
    _finish(ctx, orchestrator)


@cli.command()
@click.option("--limit", type=int, default=None, help="Show at most this many entries")
@click.pass_obj
def history(ctx: CliContext, limit: int | None) -> None:
    """Show past analyses, newest first."""
    orchestrator = _run_local(ctx, lambda o: None)
    ctx.display.show_history(orchestrator.state.history, limit)


# ==========================================
# Schedule
# ==========================================


@cli.group()
def schedule() -> None:
    """Inspect and control the recurring analysis job."""


@schedule.command("show")
@click.option("--count", type=int, default=None, help="Number of upcoming runs to project")
@click.pass_obj
def schedule_show(ctx: CliContext, count: int | None) -> None:
    """Show the schedule and its upcoming runs."""
    orchestrator = _run_remote(ctx)
    ctx.display.show_schedule(orchestrator, count or ctx.config.schedule_view.upcoming_run_count)
    _finish(ctx, orchestrator)


@schedule.command("toggle")
@click.pass_obj
def schedule_toggle(ctx: CliContext) -> None:
    """Pause the schedule if active, resume it if paused."""
    orchestrator = _run_remote(ctx, lambda o: o.toggle_schedule())
    ctx.display.show_schedule(orchestrator, ctx.config.schedule_view.upcoming_run_count)
    _finish(ctx, orchestrator)


@schedule.command("trigger")
@click.pass_obj
def schedule_trigger(ctx: CliContext) -> None:
    """Run the scheduled analysis now, outside the schedule."""
    orchestrator = _run_remote(ctx, lambda o: o.trigger_schedule_now())
    ctx.display.show_logs(orchestrator.state.logs)
    _finish(ctx, orchestrator)


@schedule.command("logs")
@click.pass_obj
def schedule_logs(ctx: CliContext) -> None:
    """Show recent executions of the schedule."""
    orchestrator = _run_remote(ctx)
    ctx.display.show_logs(orchestrator.state.logs)
    _finish(ctx, orchestrator)


# ==========================================
# Dashboard
# ==========================================


@cli.command()
@click.option("--sample", is_flag=True, help="Show illustrative sample data instead of the saved portfolio")
@click.pass_obj
def dashboard(ctx: CliContext, sample: bool) -> None:
    """Show the full dashboard."""

    async def _prepare(orchestrator: Orchestrator) -> None:
        orchestrator.set_sample_mode(sample)

    orchestrator = _run_remote(ctx, _prepare)
    ctx.display.show_dashboard(orchestrator, ctx.config.schedule_view.upcoming_run_count)
    if orchestrator.state.error:
        sys.exit(1)


def main() -> int:
    """Program entry point"""
    return cli()


if __name__ == "__main__":
    sys.exit(main())
