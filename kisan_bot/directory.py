"""
In-memory user directory for the WhatsApp bot.

Holds subscription status, location, reply language and the farm activity
log for every phone number that has written to the bot. Nothing here is
persisted: a restart starts from an empty directory.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import pytz

SUPPORTED_LANGUAGES = ("en", "hi", "mr")
DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True)
class ActivityEntry:
    text: str
    timestamp: str


@dataclass
class UserRecord:
    user_id: str
    subscribed: bool = False
    location: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    activity_log: List[ActivityEntry] = field(default_factory=list)


class UserDirectory:
    """Thread-safe map of user id -> UserRecord."""

    def __init__(self, timezone: str = "Asia/Kolkata",
                 clock: Optional[Callable[[], datetime]] = None) -> None:
        self._records: Dict[str, UserRecord] = {}
        self._lock = threading.Lock()
        self._tz = pytz.timezone(timezone)
        self._clock = clock or (lambda: datetime.now(self._tz))

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, user_id: str) -> Optional[UserRecord]:
        # copies, so callers never mutate shared state outside the lock
        with self._lock:
            record = self._records.get(user_id)
            if record is None:
                return None
            return replace(record, activity_log=list(record.activity_log))

    def upsert_default(self, user_id: str) -> bool:
        """Create a default record if absent. Returns True if it was created."""
        with self._lock:
            if user_id in self._records:
                return False
            self._records[user_id] = UserRecord(user_id=user_id)
            return True

    def set_language(self, user_id: str, code: str) -> None:
        if code not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language code: {code}")
        with self._lock:
            record = self._records.get(user_id)
            if record:
                record.language = code

    def subscribe(self, user_id: str, city: str) -> None:
        if not city:
            raise ValueError("A city is required to subscribe")
        with self._lock:
            record = self._records.get(user_id)
            if record:
                record.subscribed = True
                record.location = city

    def unsubscribe(self, user_id: str) -> None:
        with self._lock:
            record = self._records.get(user_id)
            if record:
                record.subscribed = False
                record.location = None

    def append_activity(self, user_id: str, text: str) -> Optional[ActivityEntry]:
        with self._lock:
            record = self._records.get(user_id)
            if record is None:
                return None
            entry = ActivityEntry(text=text,
                                  timestamp=self._clock().strftime("%Y-%m-%d %H:%M"))
            record.activity_log.append(entry)
            return entry

    def clear_activities(self, user_id: str) -> None:
        with self._lock:
            record = self._records.get(user_id)
            if record:
                record.activity_log.clear()

    def subscribers(self) -> List[Tuple[str, str]]:
        """Snapshot of (user_id, location) for every subscribed user."""
        with self._lock:
            return [(r.user_id, r.location) for r in self._records.values()
                    if r.subscribed and r.location]
