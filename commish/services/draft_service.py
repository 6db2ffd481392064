import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from .. import config
from ..client import SleeperClient
from ..errors import UpstreamUnavailable
from ..models.draft import DraftOrderResponse, PickOwnership
from ..models.sleeper import BracketGame, League, TradedPick, Transaction
from .draft_order import build_draft_order
from .pick_ownership import resolve_ownership
from .teams import TeamData, get_teams_data

logger = logging.getLogger(__name__)


def summarize_trade(trade: Transaction, team_name: Mapping[int, str], player_names: Mapping[str, str]) -> str:
    """One line per receiving team: "<team> received: A, B, 2026 R1 (Team)"."""
    received: Dict[int, List[str]] = {}
    for pid, roster_id in (trade.adds or {}).items():
        received.setdefault(roster_id, []).append(player_names.get(pid) or pid)
    for move in trade.draft_picks or []:
        original = team_name.get(move.roster_id) or f"Roster {move.roster_id}"
        received.setdefault(move.owner_id, []).append(f"{move.season} R{move.round} ({original})")

    parts = []
    for roster_id in sorted(received):
        labels = received[roster_id]
        more = "..." if len(labels) > 4 else ""
        parts.append(f"{team_name.get(roster_id) or f'Roster {roster_id}'} received: {', '.join(labels[:4])}{more}")
    return " | ".join(parts)


async def load_next_draft_ownership(client: SleeperClient, league_id: str) -> Optional[PickOwnership]:
    """
    Ownership of every pick in the next rookie draft. Returns None when any of
    league, rosters, teams or trades cannot be fetched, so that callers never
    show a partial board.
    """
    try:
        league_data, teams, traded_picks_data, trades_data = await asyncio.gather(
            client.get_league(league_id),
            get_teams_data(client, league_id),
            client.get_league_traded_picks(league_id),
            client.get_league_trades(league_id),
        )
    except UpstreamUnavailable as e:
        logger.warning("Pick ownership unavailable for league %s: %s", league_id, e)
        return None
    if not league_data or not teams:
        return None

    league = League(**league_data)
    next_season = str(int(league.season) + 1)
    rounds = max(1, int(league.settings.get("draft_rounds") or config.DEFAULT_DRAFT_ROUNDS))

    return resolve_ownership(
        roster_ids=[t.roster_id for t in teams],
        trades=[Transaction(**tx) for tx in trades_data],
        season=next_season,
        rounds=rounds,
        traded_picks=[TradedPick(**tp) for tp in traded_picks_data],
        team_names={t.roster_id: t.team_name for t in teams},
    )


async def build_draft_board(client: SleeperClient, league_id: str, now: Optional[datetime] = None) -> Optional[DraftOrderResponse]:
    ownership = await load_next_draft_ownership(client, league_id)
    if ownership is None:
        return None

    # These were fetched by the ownership load and come from the cache
    teams: List[TeamData] = await get_teams_data(client, league_id)
    trades = [Transaction(**tx) for tx in await client.get_league_trades(league_id)]

    try:
        bracket = [BracketGame(**g) for g in await client.get_winners_bracket(league_id)]
    except UpstreamUnavailable as e:
        logger.info("Winners bracket unavailable, ordering by standings: %s", e)
        bracket = []

    try:
        players = await client.get_all_players()
    except UpstreamUnavailable as e:
        logger.info("Player names unavailable for trade summaries: %s", e)
        players = {}
    team_names = {t.roster_id: t.team_name for t in teams}
    traded_ids = {step.trade_id for claim in ownership.ownership.values() for step in claim.history}
    player_names = {}
    for trade in trades:
        if trade.transaction_id not in traded_ids:
            continue
        for pid in trade.adds or {}:
            p = players.get(pid) or {}
            player_names[pid] = f"{p.get('first_name') or ''} {p.get('last_name') or ''}".strip() or pid

    summaries = {
        trade.transaction_id: summarize_trade(trade, team_names, player_names)
        for trade in trades
        if trade.transaction_id in traded_ids
    }
    return build_draft_order(ownership, teams, bracket, summaries, now)
