import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from quest_src.exceptions import ClockUnavailable

logger = logging.getLogger(__name__)


def day_before(today: str) -> str:
    """Calendar day preceding a "YYYY-MM-DD" date, in the same format."""
    return (date.fromisoformat(today) - timedelta(days=1)).isoformat()


class ClockSource(ABC):
    """Supplies the current calendar date in the application time zone."""

    @abstractmethod
    async def today(self) -> str:
        """Return today as "YYYY-MM-DD" or raise ClockUnavailable."""

    async def aclose(self):
        pass


class SystemClock(ClockSource):
    def __init__(self, timezone: str):
        try:
            self.zone = ZoneInfo(timezone)
        except ZoneInfoNotFoundError as e:
            raise ValueError(f"Unknown time zone: {timezone}") from e

    async def today(self) -> str:
        return datetime.now(self.zone).date().isoformat()


class TimeApiClock(ClockSource):
    """Reads the date from timeapi.io so every instance agrees on the day."""

    def __init__(self, url: str, timezone: str, timeout: float = 5.0,
                 client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.timezone = timezone
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def today(self) -> str:
        try:
            response = await self.client.get(self.url, params={"timeZone": self.timezone})
        except httpx.HTTPError as e:
            logger.warning(f"Time API request failed: {e}")
            raise ClockUnavailable(f"Time API unreachable: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Time API returned {response.status_code}: {response.text[:200]}")
            raise ClockUnavailable(f"Time API returned status {response.status_code}")

        try:
            return self._parse_date(response.json())
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Unexpected Time API payload: {e}")
            raise ClockUnavailable("Time API returned an unreadable date") from e

    @staticmethod
    def _parse_date(payload: dict) -> str:
        if payload.get("dateTime"):
            return date.fromisoformat(payload["dateTime"][:10]).isoformat()
        return date(int(payload["year"]), int(payload["month"]), int(payload["day"])).isoformat()

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()


def build_clock(config) -> ClockSource:
    if config.CLOCK_SOURCE == "system":
        return SystemClock(config.APP_TIMEZONE)
    if config.CLOCK_SOURCE == "timeapi":
        return TimeApiClock(
            config.TIME_API_URL,
            config.APP_TIMEZONE,
            timeout=config.CLOCK_TIMEOUT_SECONDS,
        )
    raise ValueError(f"Unsupported CLOCK_SOURCE: {config.CLOCK_SOURCE}")


async def today_or_none(clock: ClockSource) -> Optional[str]:
    """Soft-fail lookup used by quest creation and completion toggles."""
    try:
        return await clock.today()
    except ClockUnavailable as e:
        logger.warning(f"Clock unavailable, continuing without today's date: {e}")
        return None
