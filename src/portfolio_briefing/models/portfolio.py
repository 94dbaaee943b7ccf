"""
Portfolio models.

Contains the watch-list/email PortfolioState and the immutable
AnalysisHistoryEntry value object.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def normalize_symbol(symbol: str) -> str:
    """Trim and uppercase a ticker symbol."""
    return symbol.strip().upper()


@dataclass
class PortfolioState:
    """
    User watch-list and delivery address.

    ``stocks`` behaves as an ordered set: symbols are uppercase, unique, and
    kept in insertion order. An empty ``email`` means unset.
    """

    stocks: list[str] = field(default_factory=list)
    email: str = ""

    def add(self, symbol: str) -> bool:
        """Append a symbol. Returns False when it is empty or already present."""
        normalized = normalize_symbol(symbol)
        if not normalized or normalized in self.stocks:
            return False
        self.stocks = [*self.stocks, normalized]
        return True

    def remove(self, symbol: str) -> bool:
        """Remove a symbol. Returns False when it was not present."""
        normalized = normalize_symbol(symbol)
        if normalized not in self.stocks:
            return False
        self.stocks = [s for s in self.stocks if s != normalized]
        return True

    def has_email(self) -> bool:
        return bool(self.email)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True, slots=True)
class AnalysisHistoryEntry:
    """
    One completed analysis run.

    Entries are immutable once created. ``portfolio_value`` is only populated
    for bundled sample data; live analyses record 0.0.
    """

    id: str
    timestamp: datetime
    stocks: tuple[str, ...]
    summary: str
    key_insights: tuple[str, ...] = ()
    portfolio_value: float = 0.0

    @classmethod
    def create(
        cls,
        stocks: list[str],
        summary: str,
        key_insights: list[str],
        now: datetime | None = None,
        previous_id: str | None = None,
    ) -> "AnalysisHistoryEntry":
        """
        Build a new entry stamped with the current instant.

        The id is the creation instant in epoch milliseconds. When it would
        not be greater than ``previous_id`` (two entries within the same
        millisecond, or a clock step backwards) it is bumped past it.
        """
        created = now or datetime.now(UTC)
        entry_id = int(created.timestamp() * 1000)
        if previous_id is not None and previous_id.isdigit() and entry_id <= int(previous_id):
            entry_id = int(previous_id) + 1
        return cls(
            id=str(entry_id),
            timestamp=created,
            stocks=tuple(stocks),
            summary=summary,
            key_insights=tuple(key_insights),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the persisted history layout."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.astimezone(UTC).isoformat().replace("+00:00", "Z"),
            "stocks": list(self.stocks),
            "summary": self.summary,
            "portfolioValue": self.portfolio_value,
            "keyInsights": list(self.key_insights),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisHistoryEntry":
        """
        Rebuild an entry from its persisted form.

        Accepts both the camelCase layout written by ``to_dict`` and snake_case
        keys. Raises KeyError/ValueError/TypeError on malformed input.
        """
        insights = data.get("keyInsights", data.get("key_insights", []))
        if not isinstance(insights, list):
            insights = []
        stocks = data.get("stocks", data.get("stocks_snapshot", []))
        if not isinstance(stocks, list):
            raise TypeError("stocks must be a list")
        return cls(
            id=str(data["id"]),
            timestamp=_parse_timestamp(str(data["timestamp"])),
            stocks=tuple(str(s) for s in stocks),
            summary=str(data.get("summary", "")),
            key_insights=tuple(str(i) for i in insights),
            portfolio_value=float(data.get("portfolioValue", data.get("portfolio_value", 0.0)) or 0.0),
        )
