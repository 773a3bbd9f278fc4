# File: store.py
"""Local progress cache for the Event Claims integration.

Uses Home Assistant's Storage helper to persist the last known progress record
per (claim type, user, period) so that claim state survives restarts and
backend outages. Records are only ever written through the monotonic merge of
the eligibility engine, so a stale or repeated response can never make visible
progress, claimed status or broken status regress.

Persistence is best-effort: load failures start from an empty cache and save
failures are logged while the in-memory value stays authoritative for the
running session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from . import const
from .engines import EligibilityEngine
from .utils import dt_utils, math_utils

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .type_defs import ProgressRecord


class StorageError(HomeAssistantError):
    """Raised internally when a cache entry cannot be read or written."""


_REQUIRED_RECORD_KEYS = (
    const.DATA_RECORD_PROGRESS_COUNT,
    const.DATA_RECORD_BROKEN,
    const.DATA_RECORD_CLAIMED,
)


def build_cache_key(user_id: int, period_key: str, claim_type: str) -> str:
    """Return the namespaced cache key, e.g. "ev:disc-monthly:7:2025-03"."""
    namespace = const.CACHE_NAMESPACES.get(claim_type, claim_type)
    return (
        f"{const.CACHE_KEY_PREFIX}:{namespace}:{user_id}:"
        f"{dt_utils.period_suffix(period_key)}"
    )


def build_points_key(user_id: int) -> str:
    """Return the cache key of a user's coin balance, e.g. "ev:points:7"."""
    return f"{const.CACHE_KEY_PREFIX}:{const.CACHE_NAMESPACE_POINTS}:{user_id}"


class ProgressCache:
    """Device-persisted key-value cache of progress records.

    Thin wrapper around Home Assistant's Store API. Entries are keyed by
    namespaced strings; old periods become unreachable rather than purged.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the cache.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location.
        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = self.get_default_structure()

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return the canonical empty cache structure."""
        return {
            const.DATA_CACHE_ENTRIES: {},
            const.DATA_CACHE_NUMBERS: {},
        }

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory cache."""
        return self._data

    async def async_initialize(self) -> None:
        """Load the cache from storage. Any failure is a cold start."""
        const.LOGGER.debug("DEBUG: ProgressCache: Loading data from storage")
        try:
            existing_data = await self._store.async_load()
        except (HomeAssistantError, OSError, ValueError) as err:
            const.LOGGER.warning(
                "WARNING: Progress cache could not be loaded, starting cold: %s", err
            )
            existing_data = None

        if not isinstance(existing_data, dict):
            const.LOGGER.info("INFO: No existing progress cache found. Starting empty")
            self._data = self.get_default_structure()
            return

        self._data = self.get_default_structure()
        for bucket in (const.DATA_CACHE_ENTRIES, const.DATA_CACHE_NUMBERS):
            if isinstance(existing_data.get(bucket), dict):
                self._data[bucket] = existing_data[bucket]

        const.LOGGER.debug(
            "DEBUG: Loaded progress cache: %s records, %s numbers",
            len(self._data[const.DATA_CACHE_ENTRIES]),
            len(self._data[const.DATA_CACHE_NUMBERS]),
        )

    # -------------------------------------------------------------------------
    # Progress records
    # -------------------------------------------------------------------------

    def _read_entry(self, key: str) -> ProgressRecord | None:
        raw = self._data[const.DATA_CACHE_ENTRIES].get(key)
        if raw is None:
            return None
        if not isinstance(raw, dict) or any(
            field not in raw for field in _REQUIRED_RECORD_KEYS
        ):
            raise StorageError(f"Malformed cache entry for {key}")
        return cast("ProgressRecord", dict(raw))

    def get(
        self, user_id: int, period_key: str, claim_type: str
    ) -> ProgressRecord | None:
        """Return the cached record, or None when absent or unreadable."""
        key = build_cache_key(user_id, period_key, claim_type)
        try:
            return self._read_entry(key)
        except StorageError as err:
            const.LOGGER.warning("WARNING: Ignoring cache entry: %s", err)
            return None

    async def async_put(
        self,
        user_id: int,
        period_key: str,
        claim_type: str,
        record: ProgressRecord,
    ) -> None:
        """Store a record, overwriting the previous value for the same key."""
        key = build_cache_key(user_id, period_key, claim_type)
        self._data[const.DATA_CACHE_ENTRIES][key] = dict(record)
        await self.async_save()

    async def async_merge(
        self,
        user_id: int,
        period_key: str,
        claim_type: str,
        incoming: ProgressRecord,
    ) -> ProgressRecord:
        """Monotonically merge incoming into the cached record and persist it.

        Returns:
            The merged record, which is also the new cached value.
        """
        existing = self.get(user_id, period_key, claim_type)
        merged = (
            EligibilityEngine.merge_records(existing, incoming)
            if existing is not None
            else cast("ProgressRecord", dict(incoming))
        )
        await self.async_put(user_id, period_key, claim_type, merged)
        return merged

    # -------------------------------------------------------------------------
    # Numeric entries (string-encoded, e.g. coin balance)
    # -------------------------------------------------------------------------

    def get_number(self, key: str, default: int = const.DEFAULT_ZERO) -> int:
        """Return a cached number, or default when missing or corrupt."""
        raw = self._data[const.DATA_CACHE_NUMBERS].get(key)
        if raw is None:
            return default
        return math_utils.to_int(raw, default)

    async def async_set_number(self, key: str, value: int) -> None:
        """Store a number as a string entry."""
        self._data[const.DATA_CACHE_NUMBERS][key] = str(value)
        await self.async_save()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def async_save(self) -> None:
        """Save the cache to storage.

        Raises:
            No exceptions raised - errors are logged and the in-memory cache
            stays valid for the current session.
        """
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug("DEBUG: Progress cache saved to storage")
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save progress cache due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to save progress cache due to invalid data: %s", err
            )

    async def async_clear(self) -> None:
        """Drop every cached entry and remove the storage file."""
        const.LOGGER.warning("WARNING: Clearing Event Claims progress cache")
        self._data = self.get_default_structure()
        try:
            await self._store.async_remove()
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove progress cache %s: %s",
                self._store.path,
                err,
            )
