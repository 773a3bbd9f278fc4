# File: api.py
"""Remote sync adapter for the Event Claims integration.

Talks JSON over HTTP to the PHP attendance backend. The backend is the
authority for progress, approval state and prayer windows; this client only
fetches and submits. Payload parsing tolerates omitted fields: missing numbers
read as 0 and missing flags as False.

Idempotency of submissions is NOT guaranteed here; at-most-one enforcement is
the backend's job.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import TYPE_CHECKING, Any

import aiohttp
from homeassistant.exceptions import HomeAssistantError

from . import const
from .utils import dt_utils, math_utils

if TYPE_CHECKING:
    from .type_defs import (
        ClaimRequest,
        EligibilityWindow,
        MonthCap,
        ProgressRecord,
        SubmitResult,
    )


class EventApiError(HomeAssistantError):
    """Base error for backend communication."""


class NetworkError(EventApiError):
    """The backend could not be reached or did not answer in time."""


class ServerError(EventApiError):
    """The backend answered with an error.

    Attributes:
        code: HTTP status code of the response
        message: Server-provided message, or a short description
    """

    def __init__(self, code: int, message: str) -> None:
        """Initialize ServerError."""
        self.code = code
        self.message = message
        super().__init__(f"Server error {code}: {message}")


class EventApiClient:
    """Client for the backend's event endpoints."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        timeout: float = const.DEFAULT_TIMEOUT,
        default_window_minutes: int = const.DEFAULT_PRAYER_WINDOW_MINUTES,
    ) -> None:
        """Initialize the client.

        Args:
            session: Shared aiohttp session.
            base_url: API root, e.g. "https://host/penggajian/api/".
            timeout: Seconds before a request is abandoned.
            default_window_minutes: Prayer window length when the backend omits it.
        """
        self._session = session
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._default_window_minutes = default_window_minutes
        self.discipline_meta: dict[str, Any] = {}

    @property
    def base_url(self) -> str:
        """Return the normalized API root."""
        return self._base_url

    def _url(self, path: str) -> str:
        return self._base_url + path.lstrip("/")

    async def _async_request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        data: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Perform a request and return the decoded JSON object.

        Raises:
            NetworkError: connection failure or timeout
            ServerError: HTTP error status, non-JSON body or non-object payload
        """
        url = self._url(path)
        try:
            async with asyncio.timeout(self._timeout):
                async with self._session.request(
                    method, url, params=params, json=json, data=data
                ) as response:
                    if response.status >= 400:
                        body = await response.text()
                        raise ServerError(response.status, body[:200] or "HTTP error")
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError as err:
                        raise ServerError(
                            response.status, f"Invalid JSON from {path}"
                        ) from err
        except TimeoutError as err:
            raise NetworkError(f"Timeout after {self._timeout}s calling {path}") from err
        except aiohttp.ClientError as err:
            raise NetworkError(f"Error calling {path}: {err}") from err

        if not isinstance(payload, dict):
            raise ServerError(response.status, f"Unexpected payload from {path}")
        return payload

    async def _async_get_data(self, path: str, params: dict[str, str]) -> Any:
        """GET and unwrap `data`, raising ServerError when success is false."""
        payload = await self._async_request("GET", path, params=params)
        if not math_utils.to_bool(payload.get("success")):
            raise ServerError(
                200, str(payload.get("message") or f"Request to {path} failed")
            )
        return payload.get("data")

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    async def async_fetch_progress(
        self, user_id: int, period_key: str, claim_type: str
    ) -> ProgressRecord:
        """Fetch the authoritative progress record for a claim type and period.

        Raises:
            NetworkError, ServerError: the caller falls back to the cache.
            ValueError: unknown claim type
        """
        suffix = dt_utils.period_suffix(period_key)

        if claim_type == const.CLAIM_TYPE_DISCIPLINE_MONTHLY:
            return await self._async_fetch_discipline(user_id, period_key, suffix)
        if claim_type == const.CLAIM_TYPE_TIDINESS:
            return await self._async_fetch_tidiness(user_id, period_key, suffix)
        if claim_type in const.PRAYER_SLOTS:
            return await self._async_fetch_prayer(
                user_id, period_key, suffix, const.PRAYER_SLOTS[claim_type]
            )
        if claim_type == const.CLAIM_TYPE_REDEMPTION:
            return await self._async_fetch_redemption(user_id, period_key, suffix)
        raise ValueError(f"Unknown claim type: {claim_type}")

    @staticmethod
    def _record(
        user_id: int,
        period_key: str,
        progress: int,
        target: int,
        broken: bool = False,
        broken_reason: str | None = None,
        claimed: bool = False,
        claim_status: str | None = None,
    ) -> ProgressRecord:
        return {
            "user_id": user_id,
            "period_key": period_key,
            "progress_count": max(0, progress),
            "target_count": max(0, target),
            "broken": broken,
            "broken_reason": broken_reason if broken else None,
            "claimed": claimed,
            "claim_status": claim_status,
        }

    async def _async_fetch_discipline(
        self, user_id: int, period_key: str, month: str
    ) -> ProgressRecord:
        payload = await self._async_request(
            "GET",
            const.API_EVENT_DISCIPLINE,
            params={
                "action": const.API_ACTION_MONTHLY_PROGRESS,
                "user_id": str(user_id),
                "month": month,
            },
        )
        if not math_utils.to_bool(payload.get("success")):
            raise ServerError(
                200, str(payload.get("message") or "Monthly progress unavailable")
            )

        data = payload.get("data") or {}
        meta = payload.get("meta") or {}
        self.discipline_meta = {
            "cutoff": meta.get("on_time_max")
            or meta.get("cutoff")
            or const.DEFAULT_DISCIPLINE_CUTOFF,
            "workdays": list(meta.get("workdays") or []),
        }

        broken = math_utils.to_bool(data.get("broken"))
        return self._record(
            user_id,
            period_key,
            progress=math_utils.to_int(data.get("progress_days")),
            target=math_utils.to_int(data.get("target_days")),
            broken=broken,
            broken_reason=data.get("reason"),
            claimed=math_utils.to_bool(data.get("claimed")),
            claim_status=data.get("claim_status"),
        )

    async def _async_fetch_tidiness(
        self, user_id: int, period_key: str, day: str
    ) -> ProgressRecord:
        data = await self._async_get_data(
            const.API_EVENT_TIDINESS,
            {
                "action": const.API_ACTION_USER_STATUS,
                "user_id": str(user_id),
                "date": day,
            },
        )
        data = data or {}
        items = data.get("items") if isinstance(data.get("items"), list) else []
        if "total_points" in data:
            points = math_utils.to_int(data.get("total_points"))
        else:
            points = sum(
                math_utils.to_int(item.get("point_value"))
                for item in items
                if isinstance(item, dict)
            )
        return self._record(
            user_id,
            period_key,
            progress=points,
            target=const.DEFAULT_TIDINESS_TARGET,
            claimed=math_utils.to_bool(data.get("claimed_today")),
            claim_status=data.get("claim_status"),
        )

    async def _async_fetch_prayer(
        self, user_id: int, period_key: str, day: str, slot: str
    ) -> ProgressRecord:
        # Backends without action=status answer 404: ServerError here, and the
        # coordinator decides the slot from the cached record instead.
        data = await self._async_get_data(
            const.API_EVENT_PRAYER,
            {
                "action": const.API_ACTION_STATUS,
                "user_id": str(user_id),
                "date": day,
                "prayer": slot,
            },
        )
        data = data or {}
        claim_status = data.get("status") or None
        claimed = math_utils.to_bool(data.get("claimed"))
        return self._record(
            user_id,
            period_key,
            progress=1 if claimed or claim_status else 0,
            target=1,
            claimed=claimed,
            claim_status=claim_status,
        )

    async def _async_fetch_redemption(
        self, user_id: int, period_key: str, month: str
    ) -> ProgressRecord:
        cap = await self.async_fetch_month_cap(user_id, month)
        open_requests = await self.async_fetch_open_requests(user_id)
        return self.build_redemption_record(user_id, period_key, cap, open_requests)

    @classmethod
    def build_redemption_record(
        cls,
        user_id: int,
        period_key: str,
        cap: MonthCap,
        open_requests: list[dict[str, Any]],
    ) -> ProgressRecord:
        """Express the month cap as progress: used amount out of the full cap.

        A pending conversion request blocks another one in the same month.
        """
        pending = any(
            str(request.get("status", "")).lower() == const.APPROVAL_PENDING
            for request in open_requests
        )
        return cls._record(
            user_id,
            period_key,
            progress=cap["used_idr"],
            target=cap["used_idr"] + cap["remain_idr"],
            claim_status=const.APPROVAL_PENDING if pending else None,
        )

    # -------------------------------------------------------------------------
    # Windows
    # -------------------------------------------------------------------------

    async def async_fetch_windows(self, day: date) -> dict[str, EligibilityWindow]:
        """Fetch today's prayer windows keyed by slot ("zuhur", "ashar").

        Raises:
            NetworkError, ServerError: backend failure
            FormatError, InvalidWindowError: malformed or midnight-crossing window
        """
        data = await self._async_get_data(
            const.API_EVENT_PRAYER,
            {"action": const.API_ACTION_TIMES, "date": day.isoformat()},
        )
        data = data or {}
        timezone = str(data.get("tz") or const.DEFAULT_PRAYER_TIMEZONE)

        fallback_minutes = next(
            (
                math_utils.to_int(data[slot].get("window_min"))
                for slot in (const.PRAYER_SLOT_ZUHUR, const.PRAYER_SLOT_ASHAR)
                if isinstance(data.get(slot), dict)
                and math_utils.to_int(data[slot].get("window_min")) > 0
            ),
            self._default_window_minutes,
        )

        windows: dict[str, EligibilityWindow] = {}
        for slot in (const.PRAYER_SLOT_ZUHUR, const.PRAYER_SLOT_ASHAR):
            slot_data = data.get(slot)
            if not isinstance(slot_data, dict) or not slot_data.get("start"):
                continue
            minutes = math_utils.to_int(slot_data.get("window_min")) or fallback_minutes
            windows[slot] = dt_utils.build_window(
                str(slot_data["start"]), minutes, timezone
            )
        return windows

    async def async_fetch_window(
        self, claim_type: str, day: date
    ) -> EligibilityWindow:
        """Fetch the window of one prayer claim type.

        Raises:
            ServerError: the backend did not report this slot
        """
        slot = const.PRAYER_SLOTS.get(claim_type)
        if slot is None:
            raise ValueError(f"Claim type {claim_type} has no window")
        windows = await self.async_fetch_windows(day)
        if slot not in windows:
            raise ServerError(200, f"No {slot} window for {day.isoformat()}")
        return windows[slot]

    # -------------------------------------------------------------------------
    # Points
    # -------------------------------------------------------------------------

    async def async_fetch_coins(self, user_id: int) -> int:
        """Return the user's coin balance."""
        data = await self._async_get_data(
            const.API_EVENT_POINTS,
            {"action": const.API_ACTION_GET, "user_id": str(user_id)},
        )
        return math_utils.to_int((data or {}).get("coins"))

    async def async_fetch_month_cap(self, user_id: int, month: str) -> MonthCap:
        """Return used/remaining redemption amounts for a month ("YYYY-MM")."""
        data = await self._async_get_data(
            const.API_EVENT_POINTS,
            {
                "action": const.API_ACTION_MONTH_CAP,
                "user_id": str(user_id),
                "month_key": month,
            },
        )
        data = data or {}
        return {
            "used_idr": math_utils.to_int(data.get("used_idr")),
            "remain_idr": math_utils.to_int(data.get("remain_idr")),
        }

    async def async_fetch_open_requests(self, user_id: int) -> list[dict[str, Any]]:
        """Return redemption requests that are not yet closed by an admin."""
        data = await self._async_get_data(
            const.API_EVENT_POINTS,
            {
                "action": const.API_ACTION_REQUESTS,
                "user_id": str(user_id),
                "status": "open",
            },
        )
        if not isinstance(data, list):
            return []
        return [request for request in data if isinstance(request, dict)]

    async def async_fetch_tidiness_items(self) -> list[dict[str, Any]]:
        """Return the catalog of tidiness items a supervisor can check."""
        data = await self._async_get_data(
            const.API_EVENT_TIDINESS, {"action": const.API_ACTION_ITEMS}
        )
        if not isinstance(data, list):
            return []
        items = []
        for raw in data:
            if not isinstance(raw, dict) or not raw.get("item_code"):
                continue
            items.append(
                {
                    "item_code": str(raw["item_code"]),
                    "item_name": str(raw.get("item_name") or ""),
                    "point_value": math_utils.to_int(raw.get("point_value")),
                }
            )
        return items

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    async def async_submit_claim(self, request: ClaimRequest) -> SubmitResult:
        """Post a claim.

        A `success: false` answer is returned as accepted=False with the
        server's message; only transport and HTTP failures raise.

        Raises:
            NetworkError, ServerError
        """
        claim_type = request["claim_type"]
        user_id = request["user_id"]
        suffix = dt_utils.period_suffix(request["period_key"])

        if claim_type == const.CLAIM_TYPE_DISCIPLINE_MONTHLY:
            payload = await self._async_request(
                "POST",
                const.API_EVENT_DISCIPLINE,
                params={"action": const.API_ACTION_SUBMIT_MONTHLY},
                json={"user_id": user_id, "claimed_by": user_id, "month": suffix},
            )
        elif claim_type == const.CLAIM_TYPE_TIDINESS:
            payload = await self._async_request(
                "POST",
                const.API_EVENT_TIDINESS,
                params={"action": const.API_ACTION_CLAIM},
                json={"user_id": user_id, "date": suffix},
            )
        elif claim_type in const.PRAYER_SLOTS:
            payload = await self._async_request(
                "POST",
                const.API_EVENT_PRAYER,
                params={"action": const.API_ACTION_SUBMIT},
                data={
                    "user_id": str(user_id),
                    "date": suffix,
                    "prayer": request.get("slot") or const.PRAYER_SLOTS[claim_type],
                },
            )
        elif claim_type == const.CLAIM_TYPE_REDEMPTION:
            payload = await self._async_request(
                "POST",
                const.API_EVENT_POINTS,
                params={"action": const.API_ACTION_CONVERT},
                json={
                    "user_id": user_id,
                    "points": request.get("points", 0),
                    "rate_idr": request.get("rate_idr", const.DEFAULT_REDEEM_RATE_IDR),
                },
            )
        else:
            raise ValueError(f"Unknown claim type: {claim_type}")

        accepted = math_utils.to_bool(payload.get("success"))
        data = payload.get("data")
        return {
            "accepted": accepted,
            "reason": None if accepted else (payload.get("message") or None),
            "severity": payload.get("severity"),
            "data": data if isinstance(data, dict) else {},
        }
