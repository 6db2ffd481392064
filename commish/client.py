import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from . import config
from .cache import TTLCache, MemoryTTLCache
from .errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class SleeperClient:
    """
    Read-only client for the Sleeper API. Every GET goes through the injected
    TTL cache first; misses are fetched with httpx and stored with the TTL the
    caller asks for.
    """

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        base_url: str = config.SLEEPER_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = config.HTTP_TIMEOUT_SECONDS,
    ):
        self.cache = cache if cache is not None else MemoryTTLCache()
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    async def get(self, path: str, ttl_seconds: float = config.LEAGUE_TTL_SECONDS) -> Any:
        """
        A generic, caching GET request for the Sleeper API.
        """
        url = f"{self.base_url}{path}"

        # 1. Check cache
        cached = await self.cache.get(url)
        if cached is not None:
            return cached

        # 2. If not in cache or stale, fetch from API
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.get(url)
                response.raise_for_status()
                fresh_data = response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(
                f"Sleeper answered {e.response.status_code} for {path}",
                {"status_code": e.response.status_code, "path": path},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailable(f"Sleeper request failed for {path}: {e!r}", {"path": path}) from e

        # 3. Store in cache (Sleeper answers null for unknown ids; don't cache those)
        if fresh_data is not None:
            await self.cache.set(url, fresh_data, ttl_seconds)
        return fresh_data

    async def _get_or_empty(self, path: str, empty: Any, ttl_seconds: float = config.LEAGUE_TTL_SECONDS) -> Any:
        # Per-week endpoints 404 for weeks that haven't happened yet
        try:
            data = await self.get(path, ttl_seconds)
        except UpstreamUnavailable as e:
            if (e.details or {}).get("status_code") == 404:
                return empty
            raise
        return data if data is not None else empty

    async def get_nfl_state(self) -> Dict[str, Any]:
        return await self.get("/state/nfl", config.NFL_STATE_TTL_SECONDS)

    async def get_league(self, league_id: str) -> Dict[str, Any]:
        return await self.get(f"/league/{league_id}")

    async def get_league_users(self, league_id: str) -> List[Dict[str, Any]]:
        return await self._get_or_empty(f"/league/{league_id}/users", [])

    async def get_league_rosters(self, league_id: str) -> List[Dict[str, Any]]:
        return await self._get_or_empty(f"/league/{league_id}/rosters", [])

    async def get_league_matchups(self, league_id: str, week: int) -> List[Dict[str, Any]]:
        return await self._get_or_empty(f"/league/{league_id}/matchups/{week}", [])

    async def get_league_transactions(self, league_id: str, week: int) -> List[Dict[str, Any]]:
        return await self._get_or_empty(f"/league/{league_id}/transactions/{week}", [])

    async def get_all_league_transactions(self, league_id: str) -> List[Dict[str, Any]]:
        tasks = [self.get_league_transactions(league_id, week) for week in range(1, config.TRANSACTION_WEEKS + 1)]
        weekly = await asyncio.gather(*tasks)
        all_transactions: List[Dict[str, Any]] = []
        for result in weekly:
            all_transactions.extend(result)
        return all_transactions

    async def get_league_trades(self, league_id: str) -> List[Dict[str, Any]]:
        transactions = await self.get_all_league_transactions(league_id)
        return [tx for tx in transactions if tx.get("type") == "trade" and tx.get("status") == "complete"]

    async def get_league_traded_picks(self, league_id: str) -> List[Dict[str, Any]]:
        return await self._get_or_empty(f"/league/{league_id}/traded_picks", [])

    async def get_winners_bracket(self, league_id: str) -> List[Dict[str, Any]]:
        return await self._get_or_empty(f"/league/{league_id}/winners_bracket", [])

    async def get_league_drafts(self, league_id: str) -> List[Dict[str, Any]]:
        return await self._get_or_empty(f"/league/{league_id}/drafts", [], config.HISTORY_TTL_SECONDS)

    async def get_draft_picks(self, draft_id: str) -> List[Dict[str, Any]]:
        return await self._get_or_empty(f"/draft/{draft_id}/picks", [], config.HISTORY_TTL_SECONDS)

    async def get_all_players(self) -> Dict[str, Dict[str, Any]]:
        return await self._get_or_empty("/players/nfl", {}, config.PLAYERS_TTL_SECONDS)

    async def get_league_history(self, league_id: str) -> List[Dict[str, Any]]:
        """The league followed by its predecessors, newest first."""
        history = []
        current_league_id = league_id
        seen = set()

        while current_league_id and current_league_id not in seen:
            seen.add(current_league_id)
            try:
                league = await self.get(f"/league/{current_league_id}", config.HISTORY_TTL_SECONDS)
            except UpstreamUnavailable:
                if not history:
                    raise
                logger.warning("League history stops at %s: predecessor unavailable", current_league_id)
                break
            if not league:
                break
            history.append(league)
            previous = league.get("previous_league_id")
            current_league_id = previous if previous and previous != "0" else None

        return history
