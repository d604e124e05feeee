"""
In-memory scan history.

Implements the HistorySink protocol for a single bot process. Keeps the
most recent scans per user, newest last.
"""

from collections import defaultdict, deque

from tokenhealth.core.models import ScanHistoryRecord

DEFAULT_MAX_PER_USER = 50


class InMemoryHistorySink:
    """Append-only per-user history with a bounded length."""

    def __init__(self, max_per_user: int = DEFAULT_MAX_PER_USER):
        self._records: dict[str, deque[ScanHistoryRecord]] = defaultdict(
            lambda: deque(maxlen=max_per_user)
        )

    async def append(self, record: ScanHistoryRecord) -> None:
        self._records[record.user_id].append(record)

    async def recent(self, user_id: str, limit: int = 10) -> list[ScanHistoryRecord]:
        """Most recent scans of a user, newest first."""
        records = self._records.get(user_id)
        if not records:
            return []
        return list(reversed(records))[:limit]
