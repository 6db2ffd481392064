import pytest

from commish.cache import MemoryTTLCache
from commish.client import SleeperClient
from commish.errors import UpstreamUnavailable

from conftest import BASE_URL, LEAGUE_ID, mock_transport


async def test_get_is_cached(make_client):
    calls = []
    client = make_client(calls=calls)
    first = await client.get_nfl_state()
    second = await client.get_nfl_state()
    assert first == second
    assert calls == ["/state/nfl"]


async def test_expired_entries_are_refetched(routes):
    now = [0.0]
    calls = []
    client = SleeperClient(
        cache=MemoryTTLCache(lambda: now[0]),
        base_url=BASE_URL,
        transport=mock_transport(routes, calls=calls),
    )
    await client.get_nfl_state()
    now[0] += 10 * 60
    await client.get_nfl_state()
    assert calls == ["/state/nfl", "/state/nfl"]


async def test_missing_weeks_are_empty(make_client):
    client = make_client()
    assert await client.get_league_matchups(LEAGUE_ID, 9) == []
    transactions = await client.get_all_league_transactions(LEAGUE_ID)
    assert [tx["transaction_id"] for tx in transactions] == ["100", "200"]


async def test_trades_are_completed_trades_only(make_client):
    trades = await make_client().get_league_trades(LEAGUE_ID)
    assert [tx["transaction_id"] for tx in trades] == ["200"]


async def test_server_errors_raise_upstream_unavailable(make_client):
    client = make_client(failing=["/state/nfl"])
    with pytest.raises(UpstreamUnavailable) as excinfo:
        await client.get_nfl_state()
    assert excinfo.value.details == {"status_code": 500, "path": "/state/nfl"}
    assert excinfo.value.status_code == 502


async def test_failed_week_fails_the_whole_transaction_list(make_client):
    client = make_client(failing=[f"/league/{LEAGUE_ID}/transactions/3"])
    with pytest.raises(UpstreamUnavailable):
        await client.get_all_league_transactions(LEAGUE_ID)


async def test_league_history_follows_previous_league(make_client, routes):
    current = dict(routes[f"/league/{LEAGUE_ID}"], previous_league_id="old")
    old = {"league_id": "old", "season": "2025", "previous_league_id": "older"}
    client = make_client(extra={f"/league/{LEAGUE_ID}": current, "/league/old": old}, failing=["/league/older"])
    history = await client.get_league_history(LEAGUE_ID)
    assert [league["league_id"] for league in history] == [LEAGUE_ID, "old"]


async def test_league_history_needs_the_first_league(make_client):
    client = make_client(failing=[f"/league/{LEAGUE_ID}"])
    with pytest.raises(UpstreamUnavailable):
        await client.get_league_history(LEAGUE_ID)
