from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional

from stockledger.domain.errors import PersistenceError
from stockledger.domain.models import LogAction, LogEntry, to_decimal
from stockledger.repositories.contracts import ActivityLogWriter

log = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %Y"
RECENT_DEFAULT = 20

_LINE_RE = re.compile(r"^\[(?P<ts>[^\]]*)\] (?:(?P<action>[A-Z][A-Z ]*?): )?(?P<detail>.*)$")
# Anchored on the line tail: item names may themselves contain "= $".
_AMOUNT_RE = re.compile(r"each = \$(?P<amount>\d+(?:\.\d+)?) \(Remaining: \d+\)$")

# Entries written by older releases used a longer prefix for additions.
_ACTION_ALIASES = {"NEW ITEM": LogAction.ADD}


def format_line(entry: LogEntry) -> str:
    ts = entry.timestamp.ctime() if entry.timestamp else "?"
    return f"[{ts}] {entry.action.value}: {entry.detail}"


def parse_line(line: str) -> LogEntry:
    """Parse one history line; anything unrecognised becomes a SYSTEM entry."""
    m = _LINE_RE.match(line)
    if not m:
        return LogEntry(timestamp=None, action=LogAction.SYSTEM, detail=line)

    try:
        ts: Optional[datetime] = datetime.strptime(m.group("ts").strip(), TIMESTAMP_FORMAT)
    except ValueError:
        ts = None

    raw_action = m.group("action")
    action = None
    if raw_action:
        action = _ACTION_ALIASES.get(raw_action)
        if action is None and raw_action in LogAction.__members__:
            action = LogAction[raw_action]
    if action is None:
        detail = f"{raw_action}: {m.group('detail')}" if raw_action else m.group("detail")
        return LogEntry(timestamp=ts, action=LogAction.SYSTEM, detail=detail)
    return LogEntry(timestamp=ts, action=action, detail=m.group("detail"))


def sale_amount(entry: LogEntry) -> Decimal:
    if entry.action is not LogAction.SALE:
        return Decimal("0")
    m = _AMOUNT_RE.search(entry.detail)
    if not m:
        return Decimal("0")
    return to_decimal(m.group("amount"))


class TransactionLog:
    """Timestamped, append-only record of every mutating action."""

    def __init__(
        self,
        writer: Optional[ActivityLogWriter] = None,
        entries: Iterable[LogEntry] = (),
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.writer = writer
        self.clock = clock
        self._entries: list[LogEntry] = list(entries)

    @classmethod
    def load(cls, writer: ActivityLogWriter, clock: Callable[[], datetime] = datetime.now) -> "TransactionLog":
        try:
            lines = writer.read_lines()
        except PersistenceError as e:
            log.warning("history_unreadable error=%s", e)
            lines = []
        return cls(writer, (parse_line(ln) for ln in lines), clock=clock)

    def append(self, action: LogAction, detail: str) -> LogEntry:
        """Record an action; raises PersistenceError if the durable write fails.

        The in-memory entry is kept even when the file write fails.
        """
        entry = LogEntry(
            timestamp=self.clock().replace(microsecond=0),
            action=LogAction(action),
            detail=" ".join(str(detail).splitlines()),
        )
        self._entries.append(entry)
        if self.writer is not None:
            self.writer.append_line(format_line(entry))
        return entry

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def summarize(self) -> dict[LogAction, int]:
        counts = Counter(e.action for e in self._entries)
        return {action: counts.get(action, 0) for action in LogAction}

    def recent(self, n: int = RECENT_DEFAULT) -> list[LogEntry]:
        if n <= 0:
            return []
        return self._entries[-n:]

    def sales_total(self) -> Decimal:
        return sum((sale_amount(e) for e in self._entries), Decimal("0"))
