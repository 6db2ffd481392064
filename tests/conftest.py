import copy
from typing import Any, Dict, Iterable

import httpx
import pytest

from commish import config, database
from commish.client import SleeperClient

BASE_URL = "https://sleeper.test/v1"
LEAGUE_ID = config.LEAGUE_IDS[config.CURRENT_SEASON]

# One small league: Belltown Raptors carry two QBs on a four-man taxi,
# Double Trouble carry a single rookie. One trade moved next year's 1st.
ROUTES: Dict[str, Any] = {
    "/state/nfl": {"season": config.CURRENT_SEASON, "week": 1, "season_type": "regular"},
    f"/league/{LEAGUE_ID}": {
        "league_id": LEAGUE_ID,
        "name": "Commish League",
        "season": config.CURRENT_SEASON,
        "total_rosters": 2,
        "previous_league_id": "0",
        "settings": {"draft_rounds": 2},
    },
    f"/league/{LEAGUE_ID}/users": [
        {"user_id": "u1", "username": "raptor_fan", "display_name": "Belltown Raptors"},
        {"user_id": "u2", "username": "dt", "display_name": "Double Trouble"},
    ],
    f"/league/{LEAGUE_ID}/rosters": [
        {
            "roster_id": 1,
            "owner_id": "u1",
            "players": ["qb1", "qb2", "wr1", "wr2", "rb1"],
            "starters": ["rb1"],
            "reserve": [],
            "taxi": ["qb1", "qb2", "wr1", "wr2"],
            "settings": {"wins": 3, "losses": 10, "fpts": 1200, "fpts_decimal": 50},
        },
        {
            "roster_id": 2,
            "owner_id": "u2",
            "players": ["rb9", "te1"],
            "starters": ["te1"],
            "reserve": [],
            "taxi": ["rb9"],
            "settings": {"wins": 10, "losses": 3, "fpts": 1500},
        },
    ],
    f"/league/{LEAGUE_ID}/transactions/1": [
        {
            "transaction_id": "100",
            "type": "free_agent",
            "status": "complete",
            "created": 1000,
            "status_updated": 1000,
            "leg": 1,
            "adds": {"qb1": 1, "qb2": 1, "wr1": 1, "wr2": 1, "rb9": 2},
            "drops": None,
            "roster_ids": [1, 2],
        },
        {
            "transaction_id": "200",
            "type": "trade",
            "status": "complete",
            "created": 1500,
            "status_updated": 2000,
            "leg": 1,
            "adds": {"te1": 2},
            "drops": {"te1": 1},
            "roster_ids": [1, 2],
            "draft_picks": [
                {"season": "2027", "round": 1, "roster_id": 1, "owner_id": 2, "previous_owner_id": 1},
            ],
        },
    ],
    f"/league/{LEAGUE_ID}/traded_picks": [
        {"season": "2027", "round": 1, "roster_id": 1, "owner_id": 2, "previous_owner_id": 1},
    ],
    "/players/nfl": {
        "qb1": {"first_name": "Quinn", "last_name": "One", "position": "QB"},
        "qb2": {"first_name": "Quincy", "last_name": "Two", "position": "QB"},
        "wr1": {"first_name": "Wade", "last_name": "Receiver", "position": "WR"},
        "wr2": {"first_name": "Wes", "last_name": "Wideout", "position": "WR"},
        "rb1": {"first_name": "Ray", "last_name": "Back", "position": "RB"},
        "rb9": {"first_name": "Rookie", "last_name": "Runner", "position": "RB"},
        "te1": {"first_name": "Ty", "last_name": "End", "position": "TE"},
    },
}


def mock_transport(routes: Dict[str, Any], failing: Iterable[str] = (), calls: list = None) -> httpx.MockTransport:
    """Serve ``routes`` by path; unknown paths 404 and ``failing`` paths 500."""
    failing = set(failing)

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path[len("/v1"):]
        if calls is not None:
            calls.append(path)
        if path in failing:
            return httpx.Response(500, json={"error": "boom"})
        if path not in routes:
            return httpx.Response(404, json=None)
        return httpx.Response(200, json=routes[path])

    return httpx.MockTransport(handler)


@pytest.fixture
def routes():
    return copy.deepcopy(ROUTES)


@pytest.fixture
def make_client(routes):
    def factory(failing: Iterable[str] = (), calls: list = None, extra: Dict[str, Any] = None) -> SleeperClient:
        served = dict(routes)
        served.update(extra or {})
        return SleeperClient(base_url=BASE_URL, transport=mock_transport(served, failing, calls))

    return factory


@pytest.fixture
async def db_path(tmp_path):
    path = str(tmp_path / "commish.db")
    await database.create_tables(path)
    return path
