"""Persisted user preferences for the statistics dashboard.

The dashboard remembers a single preference: whether disabled indexers are
included in the statistics. Stores expose `get(key)` / `set(key, value)`; the
web views use the Django session, other callers an in-memory dictionary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final, Protocol

if TYPE_CHECKING:
    from django.http import HttpRequest

INCLUDE_DISABLED_KEY: Final[str] = "includeDisabledIndexersInStats"


class PreferenceStore(Protocol):
    """Key/value store for user preferences."""

    def get(self, key: str) -> Any | None:
        """Return the stored value for `key`, or None when unset."""

    def set(self, key: str, value: Any) -> None:
        """Store `value` under `key`."""


class MemoryPreferenceStore:
    """Preference store backed by a dictionary (process lifetime only)."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class SessionPreferenceStore:
    """Preference store backed by the Django session of a request."""

    def __init__(self, request: HttpRequest) -> None:
        self._request = request

    def get(self, key: str) -> Any | None:
        return getattr(self._request, "session", {}).get(key)

    def set(self, key: str, value: Any) -> None:
        self._request.session[key] = value
        self._request.session.modified = True


def load_include_disabled(store: PreferenceStore) -> bool:
    """Return the persisted include-disabled flag (False when never stored)."""

    value = store.get(INCLUDE_DISABLED_KEY)
    if value is None:
        return False
    return bool(value)


def save_include_disabled(store: PreferenceStore, *, include_disabled: bool) -> None:
    """Persist the include-disabled flag."""

    store.set(INCLUDE_DISABLED_KEY, bool(include_disabled))
