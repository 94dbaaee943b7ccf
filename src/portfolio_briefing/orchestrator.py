"""
Dashboard orchestrator.

Owns the in-memory dashboard state, dispatches user actions to the preference
store and the remote clients, and folds every outcome into a single
error/notice message pair. Nothing structured escapes to the presentation
layer: callers render ``state`` and read ``state.error`` / ``state.notice``.

Concurrency model: one asyncio event loop, one logical writer. Each remote
action has an in-flight guard; a second request for an action that is still
running is dropped, so completions of the same action never race.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TypeVar

from portfolio_briefing.clients import AgentClient, ScheduleClient
from portfolio_briefing.cron import DEFAULT_RUN_COUNT, INVALID_CRON_MESSAGE, humanize, project_next_runs
from portfolio_briefing.exceptions import (
    CronFormatError,
    PortfolioBriefingError,
    RemoteCallError,
    ValidationError,
)
from portfolio_briefing.models import (
    AnalysisHistoryEntry,
    ExecutionLogEntry,
    PortfolioState,
    PortfolioSummary,
    ScheduleRecord,
    StockQuote,
)
from portfolio_briefing.samples import sample_history, sample_quotes, summarize_quotes
from portfolio_briefing.storage import PreferenceStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

ANALYZE = "analyze"
TOGGLE_SCHEDULE = "toggle_schedule"
TRIGGER_SCHEDULE = "trigger_schedule"
REFRESH_SCHEDULE = "refresh_schedule"
REFRESH_LOGS = "refresh_logs"

_SCHEDULE_ACTIONS = frozenset({TOGGLE_SCHEDULE, TRIGGER_SCHEDULE, REFRESH_SCHEDULE})

MSG_NO_STOCKS = "Please add stocks to your portfolio first"
MSG_NO_EMAIL = "Please set an email address for delivery"
MSG_EMAIL_SAVED = "Email settings saved successfully"
MSG_ANALYSIS_DONE = "Analysis completed and email sent successfully"
MSG_ANALYSIS_FAILED = "Analysis failed"
MSG_NO_SCHEDULE = "Schedule not loaded"
MSG_TOGGLE_FAILED = "Failed to toggle schedule"
MSG_TRIGGERED = "Manual analysis triggered - check email shortly"
MSG_TRIGGER_FAILED = "Failed to trigger analysis"
MSG_SCHEDULE_FETCH_FAILED = "Failed to load schedule"
MSG_LOGS_FETCH_FAILED = "Failed to load execution logs"


def compose_instruction(stocks: list[str], email: str) -> str:
    """Natural-language instruction sent to the analysis agent."""
    return f"Analyze portfolio: {','.join(stocks)} and send email to {email}"


@dataclass
class DashboardState:
    """Everything the presentation layer renders."""

    portfolio: PortfolioState = field(default_factory=PortfolioState)
    history: list[AnalysisHistoryEntry] = field(default_factory=list)
    last_analysis: AnalysisHistoryEntry | None = None
    schedule: ScheduleRecord | None = None
    logs: list[ExecutionLogEntry] = field(default_factory=list)
    error: str = ""
    notice: str = ""
    sample_mode: bool = False
    in_flight: set[str] = field(default_factory=set)

    @property
    def analysis_loading(self) -> bool:
        return ANALYZE in self.in_flight

    @property
    def schedule_loading(self) -> bool:
        return bool(self.in_flight & _SCHEDULE_ACTIONS)

    @property
    def logs_loading(self) -> bool:
        return REFRESH_LOGS in self.in_flight


class Orchestrator:
    """
    State machine behind the portfolio dashboard.

    Usage:
        orchestrator = Orchestrator(preferences, schedule_client, agent_client, agent_id, schedule_id)
        await orchestrator.initialize()
        orchestrator.add_stock("aapl")
        await orchestrator.run_analysis_now()
        print(orchestrator.state.notice or orchestrator.state.error)
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        schedule_client: ScheduleClient,
        agent_client: AgentClient,
        agent_id: str,
        schedule_id: str,
        log_limit: int = 10,
        log_refresh_delay: float = 2.0,
        clock: Callable[[], datetime] | None = None,
    ):
        self.preferences = preferences
        self.schedule_client = schedule_client
        self.agent_client = agent_client
        self.agent_id = agent_id
        self.schedule_id = schedule_id
        self.log_limit = log_limit
        self.log_refresh_delay = log_refresh_delay
        self._clock = clock or (lambda: datetime.now(UTC))
        self._pending: set[asyncio.Task] = set()
        self.state = DashboardState()

    # ==========================================
    # Message slots
    # ==========================================

    def _fail(self, message: str) -> None:
        logger.warning(message)
        self.state.error = message
        self.state.notice = ""

    def _succeed(self, notice: str | None = None) -> None:
        self.state.error = ""
        if notice is not None:
            self.state.notice = notice

    def clear_messages(self) -> None:
        self.state.error = ""
        self.state.notice = ""

    @contextmanager
    def _guard(self, action: str) -> Iterator[bool]:
        """Mark ``action`` in flight; yields False if it already was."""
        if action in self.state.in_flight:
            logger.debug(f"Dropping '{action}': already in flight")
            yield False
            return
        self.state.in_flight.add(action)
        try:
            yield True
        finally:
            self.state.in_flight.discard(action)

    async def _call(self, pending: Awaitable[T], fallback: str) -> T:
        """Await a client call; anything it raises surfaces as RemoteCallError."""
        try:
            return await pending
        except PortfolioBriefingError:
            raise
        except Exception as e:
            logger.exception(f"{fallback}: {e}")
            raise RemoteCallError(str(e) or fallback) from e

    # ==========================================
    # Startup
    # ==========================================

    def load(self) -> None:
        """Restore watch-list, email and history from the preference store."""
        self.state.portfolio = self.preferences.load_portfolio()
        self.state.history = self.preferences.load_history()
        logger.info(
            f"Loaded {len(self.state.portfolio.stocks)} symbols and {len(self.state.history)} history entries"
        )

    async def initialize(self) -> None:
        """Load persisted preferences, then fetch the schedule and its logs."""
        self.load()
        await self.refresh_schedule()
        await self.refresh_logs()

    # ==========================================
    # Portfolio
    # ==========================================

    def add_stock(self, symbol: str) -> bool:
        """Add a symbol to the watch-list. Empty or duplicate input is ignored."""
        if not self.state.portfolio.add(symbol):
            return False
        logger.info(f"Added {self.state.portfolio.stocks[-1]} to watch-list")
        return self._persist(lambda: self.preferences.save_stocks(self.state.portfolio.stocks))

    def remove_stock(self, symbol: str) -> bool:
        """Remove a symbol from the watch-list; absent symbols are a no-op."""
        if not self.state.portfolio.remove(symbol):
            return False
        logger.info(f"Removed {symbol.strip().upper()} from watch-list")
        return self._persist(lambda: self.preferences.save_stocks(self.state.portfolio.stocks))

    def save_email(self, address: str) -> bool:
        """Store the delivery address verbatim."""
        self.state.portfolio.email = address
        if not self._persist(lambda: self.preferences.save_email(address)):
            return False
        self._succeed(MSG_EMAIL_SAVED)
        return True

    def _persist(self, write: Callable[[], None]) -> bool:
        try:
            write()
        except PortfolioBriefingError as e:
            self._fail(e.message)
            return False
        self._succeed()
        return True

    # ==========================================
    # Analysis
    # ==========================================

    def _check_analysis_preconditions(self) -> None:
        if not self.state.portfolio.stocks:
            raise ValidationError(MSG_NO_STOCKS)
        if not self.state.portfolio.has_email():
            raise ValidationError(MSG_NO_EMAIL)

    async def run_analysis_now(self) -> bool:
        """
        Ask the agent to analyze the watch-list and email the result.

        On success exactly one history entry is prepended and persisted. On any
        failure history is left untouched and the reason lands in ``state.error``.
        """
        with self._guard(ANALYZE) as acquired:
            if not acquired:
                return False
            try:
                self._check_analysis_preconditions()
                self.clear_messages()

                stocks = list(self.state.portfolio.stocks)
                message = compose_instruction(stocks, self.state.portfolio.email)
                result = await self._call(self.agent_client.call_agent(message, self.agent_id), MSG_ANALYSIS_FAILED)
                if not result.success:
                    raise RemoteCallError(result.error or MSG_ANALYSIS_FAILED)

                head = self.state.history[0] if self.state.history else None
                entry = AnalysisHistoryEntry.create(
                    stocks=stocks,
                    summary=result.summary(),
                    key_insights=result.insights(),
                    now=self._clock(),
                    previous_id=head.id if head else None,
                )
                self.state.history = [entry, *self.state.history]
                self.state.last_analysis = entry
                self.preferences.save_history(self.state.history)
            except PortfolioBriefingError as e:
                self._fail(e.message)
                return False

        logger.info(f"Analysis {entry.id} recorded for {len(entry.stocks)} symbols")
        self._succeed(MSG_ANALYSIS_DONE)
        return True

    # ==========================================
    # Schedule
    # ==========================================

    async def refresh_schedule(self) -> bool:
        """Re-fetch the schedule record and replace the in-memory copy."""
        with self._guard(REFRESH_SCHEDULE) as acquired:
            if not acquired:
                return False
            return await self._fetch_schedule()

    async def _fetch_schedule(self) -> bool:
        try:
            result = await self._call(self.schedule_client.get_schedule(self.schedule_id), MSG_SCHEDULE_FETCH_FAILED)
        except PortfolioBriefingError as e:
            self._fail(e.message)
            return False
        if not result.success or result.schedule is None:
            self._fail(result.error or MSG_SCHEDULE_FETCH_FAILED)
            return False
        self.state.schedule = result.schedule
        logger.debug(f"Schedule {self.schedule_id} is {result.schedule.status_label.lower()}")
        return True

    async def toggle_schedule(self) -> bool:
        """
        Pause an active schedule or resume a paused one.

        The local ``is_active`` flag is never flipped directly: after a
        successful call the record is re-fetched from the scheduler.
        """
        schedule = self.state.schedule
        if schedule is None:
            self._fail(MSG_NO_SCHEDULE)
            return False

        with self._guard(TOGGLE_SCHEDULE) as acquired:
            if not acquired:
                return False
            if schedule.is_active:
                pending = self.schedule_client.pause_schedule(self.schedule_id)
            else:
                pending = self.schedule_client.resume_schedule(self.schedule_id)

            try:
                result = await self._call(pending, MSG_TOGGLE_FAILED)
            except PortfolioBriefingError as e:
                self._fail(e.message)
                return False
            if not result.success:
                self._fail(result.error or MSG_TOGGLE_FAILED)
                return False

            logger.info(f"Schedule {self.schedule_id} {'paused' if schedule.is_active else 'resumed'}")
            if not await self._fetch_schedule():
                return False

        self._succeed()
        return True

    async def trigger_schedule_now(self) -> bool:
        """Request an out-of-band run and refresh the logs shortly after."""
        with self._guard(TRIGGER_SCHEDULE) as acquired:
            if not acquired:
                return False
            try:
                result = await self._call(
                    self.schedule_client.trigger_schedule_now(self.schedule_id), MSG_TRIGGER_FAILED
                )
            except PortfolioBriefingError as e:
                self._fail(e.message)
                return False
            if not result.success:
                self._fail(result.error or MSG_TRIGGER_FAILED)
                return False

        self._succeed(MSG_TRIGGERED)
        self._schedule_log_refresh()
        return True

    def _schedule_log_refresh(self) -> None:
        task = asyncio.create_task(self._delayed_log_refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _delayed_log_refresh(self) -> None:
        await asyncio.sleep(self.log_refresh_delay)
        if REFRESH_LOGS in self.state.in_flight:
            logger.warning("Delayed log refresh skipped: another log refresh is in flight")
            return
        await self.refresh_logs()

    async def refresh_logs(self) -> bool:
        """Re-fetch execution logs and replace the in-memory list."""
        with self._guard(REFRESH_LOGS) as acquired:
            if not acquired:
                return False
            try:
                result = await self._call(
                    self.schedule_client.get_schedule_logs(self.schedule_id, limit=self.log_limit),
                    MSG_LOGS_FETCH_FAILED,
                )
            except PortfolioBriefingError as e:
                self._fail(e.message)
                return False
            if not result.success:
                self._fail(result.error or MSG_LOGS_FETCH_FAILED)
                return False
            self.state.logs = list(result.executions)
        return True

    async def wait_for_pending(self) -> None:
        """Wait for delayed refreshes scheduled by earlier actions."""
        if not self._pending:
            return
        outcomes = await asyncio.gather(*list(self._pending), return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                logger.warning(f"Delayed refresh failed: {outcome!r}")

    async def close(self) -> None:
        """Cancel delayed refreshes that have not run yet."""
        for task in list(self._pending):
            task.cancel()
        await self.wait_for_pending()

    # ==========================================
    # Schedule projection
    # ==========================================

    def schedule_description(self) -> str:
        """English rendering of the schedule's cron expression."""
        if self.state.schedule is None:
            return ""
        try:
            return humanize(self.state.schedule.cron_expression)
        except CronFormatError:
            return INVALID_CRON_MESSAGE

    def upcoming_runs(self, count: int = DEFAULT_RUN_COUNT, now: datetime | None = None) -> list[str]:
        """Formatted upcoming run times of the loaded schedule."""
        if self.state.schedule is None:
            return []
        schedule = self.state.schedule
        return project_next_runs(schedule.cron_expression, schedule.timezone, count, now or self._clock())

    # ==========================================
    # Display views
    # ==========================================

    def set_sample_mode(self, enabled: bool) -> None:
        self.state.sample_mode = enabled

    def display_history(self) -> list[AnalysisHistoryEntry]:
        return sample_history(self._clock()) if self.state.sample_mode else list(self.state.history)

    def display_stocks(self) -> list[str]:
        if self.state.sample_mode:
            return [q.symbol for q in sample_quotes()]
        return list(self.state.portfolio.stocks)

    def display_quotes(self) -> list[StockQuote]:
        return sample_quotes() if self.state.sample_mode else []

    def display_summary(self) -> PortfolioSummary | None:
        return summarize_quotes(sample_quotes()) if self.state.sample_mode else None

    def display_last_analysis(self) -> AnalysisHistoryEntry | None:
        if self.state.sample_mode:
            return sample_history(self._clock())[0]
        return self.state.last_analysis
