# File: coordinator.py
"""Coordinator for the Event Claims integration.

Polls the backend for every claim type's progress, merges it into the local
progress cache and evaluates eligibility. Backend outages fall back to the
cached records, so a refresh never fails just because the server is down.
Claim submission also lives here: eligibility is re-checked locally, the claim
is posted, and the cache is only marked claimed once the server accepted it.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta
from typing import Any, cast

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from homeassistant.util import dt as dt_util

from . import const
from .api import EventApiClient, EventApiError
from .engines import EligibilityEngine
from .store import ProgressCache, build_points_key
from .type_defs import (
    ClaimDecision,
    ClaimRequest,
    EligibilityWindow,
    MonthCap,
    ProgressRecord,
    RuleConfig,
    SubmitResult,
)
from .utils import dt_utils, math_utils


class ClaimNotAllowedError(HomeAssistantError):
    """A claim was attempted while its decision is not eligible."""


class EventClaimsCoordinator(DataUpdateCoordinator):
    """Coordinator for Event Claims.

    One coordinator per config entry, i.e. per backend user.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        api: EventApiClient,
        cache: ProgressCache,
    ):
        """Initialize the EventClaimsCoordinator."""
        update_interval_minutes = config_entry.options.get(
            const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL
        )

        super().__init__(
            hass,
            const.LOGGER,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=timedelta(minutes=update_interval_minutes),
        )
        self.config_entry = config_entry
        self.api = api
        self.cache = cache

    # -------------------------------------------------------------------------------------
    # Configuration Accessors
    # -------------------------------------------------------------------------------------

    @property
    def user_id(self) -> int:
        """Backend user this entry claims for."""
        return int(self.config_entry.data[const.CONF_USER_ID])

    def _option(self, key: str, default: Any) -> Any:
        return self.config_entry.options.get(key, default)

    def build_rule_config(
        self,
        claim_type: str,
        coins: int,
        month_cap: MonthCap | None,
        windows: dict[str, EligibilityWindow],
    ) -> RuleConfig:
        """Assemble the engine configuration for one claim type."""
        if claim_type == const.CLAIM_TYPE_DISCIPLINE_MONTHLY:
            return {
                "target_days": self._option(
                    const.CONF_DISCIPLINE_TARGET_DAYS,
                    const.DEFAULT_DISCIPLINE_TARGET_DAYS,
                ),
                "claim_mode": self._option(
                    const.CONF_DISCIPLINE_CLAIM_MODE,
                    const.DEFAULT_DISCIPLINE_CLAIM_MODE,
                ),
                "claim_day": self._option(
                    const.CONF_DISCIPLINE_CLAIM_DAY,
                    const.DEFAULT_DISCIPLINE_CLAIM_DAY,
                ),
            }
        if claim_type in const.PRAYER_SLOTS:
            return {"window": windows.get(const.PRAYER_SLOTS[claim_type])}
        if claim_type == const.CLAIM_TYPE_REDEMPTION:
            config: RuleConfig = {
                "coin_balance": coins,
                "redeem_divisor": self.redeem_divisor,
                "monthly_cap_idr": self._option(
                    const.CONF_MONTHLY_CAP_IDR, const.DEFAULT_MONTHLY_CAP_IDR
                ),
            }
            if month_cap is not None:
                config["remain_cap_idr"] = month_cap["remain_idr"]
            return config
        return {}

    @property
    def redeem_divisor(self) -> int:
        """Coins per redeemable point."""
        return self._option(const.CONF_REDEEM_DIVISOR, const.DEFAULT_REDEEM_DIVISOR)

    @property
    def redeem_rate_idr(self) -> int:
        """Rupiah paid per redeemed point."""
        return self._option(const.CONF_REDEEM_RATE_IDR, const.DEFAULT_REDEEM_RATE_IDR)

    # -------------------------------------------------------------------------------------
    # Data Accessors
    # -------------------------------------------------------------------------------------

    def get_decision(self, claim_type: str) -> ClaimDecision | None:
        """Return the latest decision for a claim type."""
        if not self.data:
            return None
        return self.data[const.DATA_DECISIONS].get(claim_type)

    def is_using_cached(self, claim_type: str) -> bool:
        """Return True if the latest decision was made from the local cache."""
        if not self.data:
            return False
        return bool(self.data[const.DATA_USING_CACHED].get(claim_type))

    @property
    def coins(self) -> int:
        """Latest known coin balance."""
        if not self.data:
            return self.cache.get_number(build_points_key(self.user_id))
        return self.data[const.DATA_COINS]

    @staticmethod
    def period_key_for(claim_type: str, value: date | datetime) -> str:
        """Return the period a claim type is evaluated in for a given day."""
        return dt_utils.format_period_key(
            const.CLAIM_TYPE_PERIOD_KIND[claim_type], value
        )

    # -------------------------------------------------------------------------------------
    # Periodic Update
    # -------------------------------------------------------------------------------------

    async def _async_update_data(self) -> dict[str, Any]:
        """Fetch, merge and decide for every claim type."""
        try:
            return await self._async_refresh_claims()
        except Exception as err:  # pylint: disable=broad-exception-caught
            raise UpdateFailed(f"Error updating Event Claims data: {err}") from err

    async def _async_refresh_claims(self) -> dict[str, Any]:
        now = dt_util.now()
        today = now.date()
        user_id = self.user_id
        period_keys = {
            claim_type: self.period_key_for(claim_type, today)
            for claim_type in const.CLAIM_TYPES
        }
        month_key = period_keys[const.CLAIM_TYPE_REDEMPTION]

        progress_types = [
            claim_type
            for claim_type in const.CLAIM_TYPES
            if claim_type != const.CLAIM_TYPE_REDEMPTION
        ]

        results = await asyncio.gather(
            *(
                self.api.async_fetch_progress(
                    user_id, period_keys[claim_type], claim_type
                )
                for claim_type in progress_types
            ),
            self.api.async_fetch_coins(user_id),
            self.api.async_fetch_month_cap(
                user_id, dt_utils.period_suffix(month_key)
            ),
            self.api.async_fetch_open_requests(user_id),
            self.api.async_fetch_windows(today),
            self.api.async_fetch_tidiness_items(),
            return_exceptions=True,
        )
        progress_results = dict(zip(progress_types, results[: len(progress_types)]))
        (
            coins_result,
            cap_result,
            requests_result,
            windows_result,
            items_result,
        ) = results[len(progress_types) :]

        previous: dict[str, Any] = self.data or {}

        # Coins
        points_key = build_points_key(user_id)
        if self._is_ok(coins_result, "coin balance"):
            coins = cast(int, coins_result)
            await self.cache.async_set_number(points_key, coins)
        else:
            coins = self.cache.get_number(points_key)

        # Month cap and open redemption requests
        month_cap: MonthCap | None = None
        open_requests: list[dict[str, Any]] = previous.get(const.DATA_OPEN_REQUESTS, [])
        if self._is_ok(cap_result, "month cap"):
            month_cap = cast(MonthCap, cap_result)
        if self._is_ok(requests_result, "open requests"):
            open_requests = cast(list, requests_result)
        if month_cap is not None and not isinstance(requests_result, BaseException):
            progress_results[const.CLAIM_TYPE_REDEMPTION] = (
                EventApiClient.build_redemption_record(
                    user_id, month_key, month_cap, open_requests
                )
            )
        else:
            progress_results[const.CLAIM_TYPE_REDEMPTION] = EventApiError(
                "Redemption state unavailable"
            )

        # Prayer windows, same-day fallback to the last good fetch
        windows: dict[str, EligibilityWindow] = {}
        if isinstance(windows_result, ValueError):
            const.LOGGER.warning(
                "WARNING: Backend sent an unusable prayer window: %s", windows_result
            )
        elif self._is_ok(windows_result, "prayer windows"):
            windows = cast(dict, windows_result)
        if not windows and previous.get(const.DATA_LAST_UPDATED, "")[:10] == (
            today.isoformat()
        ):
            windows = previous.get(const.DATA_WINDOWS, {})

        items: list[dict[str, Any]] = previous.get(const.DATA_TIDINESS_ITEMS, [])
        if self._is_ok(items_result, "tidiness items"):
            items = cast(list, items_result)

        # Decisions
        decisions: dict[str, ClaimDecision] = {}
        using_cached: dict[str, bool] = {}
        for claim_type in const.CLAIM_TYPES:
            period_key = period_keys[claim_type]
            result = progress_results[claim_type]
            cached_record = self.cache.get(user_id, period_key, claim_type)
            server_record: ProgressRecord | None = None

            if self._is_ok(result, f"{claim_type} progress"):
                server_record = cast(ProgressRecord, result)
                await self.cache.async_merge(
                    user_id, period_key, claim_type, server_record
                )
            using_cached[claim_type] = server_record is None

            decisions[claim_type] = EligibilityEngine.decide(
                claim_type,
                now,
                period_key,
                server_record,
                cached_record,
                self.build_rule_config(claim_type, coins, month_cap, windows),
                user_id=user_id,
            )
            const.LOGGER.debug(
                "DEBUG: %s on %s -> %s (%s)%s",
                claim_type,
                period_key,
                decisions[claim_type][const.DATA_DECISION_STATUS],
                decisions[claim_type][const.DATA_DECISION_REASON],
                " [cached]" if using_cached[claim_type] else "",
            )

        return {
            const.DATA_DECISIONS: decisions,
            const.DATA_USING_CACHED: using_cached,
            const.DATA_COINS: coins,
            const.DATA_MONTH_CAP: month_cap,
            const.DATA_WINDOWS: windows,
            const.DATA_OPEN_REQUESTS: open_requests,
            const.DATA_TIDINESS_ITEMS: items,
            const.DATA_DISCIPLINE_META: dict(self.api.discipline_meta),
            const.DATA_LAST_UPDATED: now.isoformat(),
        }

    @staticmethod
    def _is_ok(result: Any, label: str) -> bool:
        """Return True for a successful gather result.

        Backend errors are logged and reported as False; anything else that
        was raised is a bug and is re-raised.
        """
        if isinstance(result, EventApiError):
            const.LOGGER.warning(
                "WARNING: Could not fetch %s, using cached data: %s", label, result
            )
            return False
        if isinstance(result, ValueError):
            const.LOGGER.warning("WARNING: Unusable %s: %s", label, result)
            return False
        if isinstance(result, BaseException):
            raise result
        return True

    # -------------------------------------------------------------------------------------
    # Claim Submission
    # -------------------------------------------------------------------------------------

    async def async_submit_claim(self, claim_type: str) -> SubmitResult:
        """Submit a claim for the current period.

        Raises:
            ClaimNotAllowedError: the latest decision is not eligible
            HomeAssistantError: the backend rejected the claim or was unreachable
        """
        decision = self.get_decision(claim_type)
        if (
            decision is None
            or decision[const.DATA_DECISION_STATUS] != const.CLAIM_STATUS_ELIGIBLE
        ):
            reason = (
                decision[const.DATA_DECISION_REASON] if decision else "no data yet"
            )
            raise ClaimNotAllowedError(
                f"Claim '{claim_type}' is not allowed right now: {reason}"
            )

        record = decision[const.DATA_DECISION_RECORD]
        user_id = self.user_id
        period_key = record[const.DATA_RECORD_PERIOD_KEY]
        request: ClaimRequest = {
            "user_id": user_id,
            "period_key": period_key,
            "claim_type": claim_type,
            "submitted_at": dt_util.utcnow().isoformat(),
        }
        if claim_type in const.PRAYER_SLOTS:
            request["slot"] = const.PRAYER_SLOTS[claim_type]
        if claim_type == const.CLAIM_TYPE_REDEMPTION:
            request["points"] = math_utils.redeemable_points(
                self.coins, self.redeem_divisor
            )
            request["rate_idr"] = self.redeem_rate_idr

        const.LOGGER.info(
            "INFO: Submitting %s claim for user %s on %s",
            claim_type,
            user_id,
            period_key,
        )
        try:
            result = await self.api.async_submit_claim(request)
        except EventApiError as err:
            const.LOGGER.error(
                "ERROR: Claim submission for %s failed: %s", claim_type, err
            )
            raise HomeAssistantError(const.MESSAGE_GENERIC_RETRY) from err

        if not result["accepted"]:
            message = result["reason"] or const.MESSAGE_GENERIC_RETRY
            if result["severity"] == const.API_SEVERITY_WARNING:
                const.LOGGER.warning(
                    "WARNING: %s claim refused by server: %s", claim_type, message
                )
            else:
                const.LOGGER.error(
                    "ERROR: %s claim rejected by server: %s", claim_type, message
                )
            raise HomeAssistantError(message)

        # Redemption can repeat within the month; only the pending request blocks it
        claimed = cast(ProgressRecord, dict(record))
        claimed[const.DATA_RECORD_CLAIMED] = (
            claim_type != const.CLAIM_TYPE_REDEMPTION
        )
        claimed[const.DATA_RECORD_CLAIM_STATUS] = const.APPROVAL_PENDING
        await self.cache.async_merge(user_id, period_key, claim_type, claimed)

        points_key = build_points_key(user_id)
        if claim_type == const.CLAIM_TYPE_TIDINESS:
            gained = math_utils.to_int(
                result["data"].get("points"), record[const.DATA_RECORD_PROGRESS_COUNT]
            )
            await self.cache.async_set_number(
                points_key, self.cache.get_number(points_key) + gained
            )
        elif claim_type == const.CLAIM_TYPE_REDEMPTION and (
            "coins_after" in result["data"]
        ):
            await self.cache.async_set_number(
                points_key, math_utils.to_int(result["data"]["coins_after"])
            )

        const.LOGGER.info("INFO: %s claim accepted for %s", claim_type, period_key)
        await self.async_request_refresh()
        return result
