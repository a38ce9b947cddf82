from contextlib import contextmanager
from threading import Lock
from typing import Dict, Tuple


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = Lock()
        self.users = 0


class KeyedLocks:
    """One lock per key, alive only while someone holds or waits for it.

    ``hold`` takes several keys in sorted order so two callers needing the same
    pair of keys cannot deadlock.
    """

    def __init__(self):
        self._guard = Lock()
        self._entries: Dict[Tuple[str, ...], _Entry] = {}

    def __len__(self):
        with self._guard:
            return len(self._entries)

    def _checkout(self, key) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key, entry: _Entry):
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, *keys):
        held = []
        try:
            for key in sorted(set(keys)):
                entry = self._checkout(key)
                entry.lock.acquire()
                held.append((key, entry))
            yield
        finally:
            for key, entry in reversed(held):
                entry.lock.release()
                self._checkin(key, entry)


def room_day_key(room_id, date):
    return ("room", room_id, date)


def user_day_key(user_id, date):
    return ("user", user_id, date)


def reservation_key(reservation_id):
    return ("reservation", reservation_id)
