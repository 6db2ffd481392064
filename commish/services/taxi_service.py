import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .. import config
from ..client import SleeperClient
from ..errors import UpstreamUnavailable
from ..models.compliance import (
    ComplianceStatus,
    RunType,
    TaxiCronResult,
    TaxiFlag,
    TaxiFlagsReport,
    TaxiLimits,
    TaxiSnapshot,
    TaxiValidateResult,
    TeamRef,
    Violation,
    ViolationCode,
)
from ..models.sleeper import Draft, League, Matchup, NFLState, Pick, Player, Roster, Transaction
from .run_type import is_enforcing, pick_run_type
from .snapshots import SnapshotStore
from .taxi_rules import (
    DraftSelection,
    LineupWeek,
    TaxiRosterState,
    build_tenures,
    evaluate_taxi,
    find_activations,
)
from .teams import TeamData, get_teams_data

logger = logging.getLogger(__name__)


def default_limits() -> TaxiLimits:
    return TaxiLimits(max_slots=config.MAX_TAXI_SIZE, max_qb=config.MAX_TAXI_QB)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def current_nfl_state(client: SleeperClient, now: datetime) -> Tuple[int, int]:
    try:
        state = NFLState(**(await client.get_nfl_state() or {}))
        return int(state.season or now.year), int(state.week or 0)
    except (UpstreamUnavailable, ValueError) as e:
        logger.warning("NFL state unavailable, assuming %s preseason: %s", now.year, e)
        return now.year, 0


def _find_season_roster(rosters: List[Roster], owner_id: Optional[str], roster_id: int) -> Optional[Roster]:
    # Roster ids are stable within a league chain; owner id survives renumbering
    if owner_id:
        for roster in rosters:
            if roster.owner_id == owner_id:
                return roster
    return next((r for r in rosters if r.roster_id == roster_id), None)


async def _season_history(
    client: SleeperClient, league: League, owner_id: Optional[str], roster_id: int
) -> Tuple[List[Tuple[str, Transaction]], List[DraftSelection], List[LineupWeek]]:
    """Transactions, rookie draft selections and weekly lineups of one season for this franchise."""
    season = league.season
    rosters = [Roster(**r) for r in await client.get_league_rosters(league.league_id)]
    season_roster = _find_season_roster(rosters, owner_id, roster_id)
    if season_roster is None:
        return [], [], []
    rid = season_roster.roster_id

    transactions_data, drafts_data, weekly = await asyncio.gather(
        client.get_all_league_transactions(league.league_id),
        client.get_league_drafts(league.league_id),
        asyncio.gather(*[
            client.get_league_matchups(league.league_id, week)
            for week in range(1, config.REGULAR_SEASON_WEEKS + 1)
        ]),
    )

    # Remap this season's roster id onto the current one so tenures line up
    transactions = []
    for tx_data in transactions_data:
        tx = Transaction(**tx_data)
        tx.adds = {pid: (roster_id if to == rid else -1) for pid, to in (tx.adds or {}).items()}
        tx.drops = {pid: (roster_id if frm == rid else -1) for pid, frm in (tx.drops or {}).items()}
        transactions.append((season, tx))

    drafted = []
    for draft_data in drafts_data:
        draft = Draft(**draft_data)
        for pick_data in await client.get_draft_picks(draft.draft_id):
            pick = Pick(**pick_data)
            if pick.roster_id == rid and pick.player_id:
                drafted.append(DraftSelection(season, pick.player_id, roster_id, int(draft.start_time or 0)))

    lineups = []
    for week, matchups_data in enumerate(weekly, start=1):
        matchups = [Matchup(**m) for m in matchups_data]
        mine = next((m for m in matchups if m.roster_id == rid), None)
        if mine is None or not mine.starters:
            continue
        opponent = next(
            (m for m in matchups if m.matchup_id is not None and m.matchup_id == mine.matchup_id and m.roster_id != rid),
            None,
        )
        played = mine.scored > 0 or (opponent is not None and opponent.scored > 0)
        lineups.append(LineupWeek(season, week, frozenset(pid for pid in mine.starters if pid and pid != "0"), played))

    return transactions, drafted, lineups


async def validate_taxi_for_roster(
    client: SleeperClient,
    season: str,
    roster_id: int,
    run_type: RunType = RunType.ADMIN_RERUN,
    limits: Optional[TaxiLimits] = None,
    now: Optional[datetime] = None,
) -> Optional[TaxiValidateResult]:
    """
    Evaluate the taxi rules for one roster. Returns None when the season has no
    league or the roster does not exist. Raises UpstreamUnavailable when the
    data needed to decide cannot be fetched.
    """
    league_id = config.league_id_for_season(season)
    if not league_id:
        return None
    limits = limits or default_limits()

    teams = await get_teams_data(client, league_id)
    team = next((t for t in teams if t.roster_id == roster_id), None)
    rosters = [Roster(**r) for r in await client.get_league_rosters(league_id)]
    roster = next((r for r in rosters if r.roster_id == roster_id), None)
    if roster is None:
        return None
    team_name = team.team_name if team else f"Roster {roster_id}"

    # Starters of the current week, from matchups when the season is under way
    starters = set(pid for pid in roster.starters or [] if pid and pid != "0")
    _, week = await current_nfl_state(client, now or _utcnow())
    if str(season) == config.CURRENT_SEASON and week > 0:
        for m in await client.get_league_matchups(league_id, week):
            matchup = Matchup(**m)
            if matchup.roster_id == roster_id:
                starters.update(pid for pid in matchup.starters or [] if pid and pid != "0")

    history = [League(**item) for item in await client.get_league_history(league_id)]
    per_season = await asyncio.gather(*[
        _season_history(client, league, roster.owner_id, roster_id) for league in history
    ])
    transactions, drafted, lineups = [], [], []
    for season_transactions, season_drafted, season_lineups in per_season:
        transactions.extend(season_transactions)
        drafted.extend(season_drafted)
        lineups.extend(season_lineups)

    players_data = await client.get_all_players()
    taxi = [pid for pid in roster.taxi or [] if pid]
    players = {
        pid: Player(**{**players_data[pid], "player_id": pid})
        for pid in taxi
        if pid in players_data
    }

    tenures = build_tenures(roster_id, transactions, drafted)
    state = TaxiRosterState(
        roster_id=roster_id,
        taxi=taxi,
        starters=starters,
        reserve=set(pid for pid in roster.reserve or [] if pid),
        players=players,
        tenures=tenures,
        activations=find_activations(tenures, lineups),
    )
    evaluation = evaluate_taxi(state, run_type, limits)
    return TaxiValidateResult(
        team=TeamRef(team_name=team_name, roster_id=roster_id, season=str(season)),
        run_type=run_type,
        status=evaluation.status,
        compliant=evaluation.compliant,
        limits=limits,
        current=evaluation.current,
        violations=evaluation.violations,
        warnings=evaluation.warnings,
    )


def unknown_result(season: str, roster_id: int, run_type: RunType, note: str, team_name: Optional[str] = None) -> TaxiValidateResult:
    return TaxiValidateResult(
        team=TeamRef(team_name=team_name or f"Roster {roster_id}", roster_id=roster_id, season=str(season)),
        run_type=run_type,
        status=ComplianceStatus.UNKNOWN,
        compliant=None,
        limits=default_limits(),
        note=note,
    )


async def record_observations(store: SnapshotStore, team_id: str, taxi_ids: Iterable[str], now: datetime) -> Dict[str, str]:
    """Track when each player was first seen on taxi; returns player id -> first seen."""
    now_iso = now.isoformat()
    players = await store.get_observations(team_id)
    for pid in taxi_ids:
        seen = players.get(pid)
        if seen is None:
            players[pid] = {"first_seen": now_iso, "last_seen": now_iso, "seen_count": 1}
        else:
            seen["last_seen"] = now_iso
            seen["seen_count"] = int(seen.get("seen_count") or 0) + 1
    await store.set_observations(team_id, players, now_iso)
    return {pid: info["first_seen"] for pid, info in players.items()}


_GENERIC_MESSAGES = {
    ViolationCode.TOO_MANY_ON_TAXI: "Too many players on taxi",
    ViolationCode.TOO_MANY_QBS: "Too many QBs on taxi",
    ViolationCode.INVALID_INTAKE: "Taxi intake must be FA/Trade/Draft",
    ViolationCode.ROSTER_INCONSISTENT: "Taxi conflicts with starters/IR",
    ViolationCode.BOOMERANG_ACTIVE_PLAYER: "Previously active this tenure on taxi",
}


def describe_violations(violations: Iterable[Violation], name_of: Callable[[str], str] = str) -> str:
    """One line of flag text; each violation's own detail carries the limits that produced it."""
    parts = []
    for v in violations:
        text = v.detail or _GENERIC_MESSAGES.get(v.code)
        if not text:
            continue
        if v.code == ViolationCode.BOOMERANG_ACTIVE_PLAYER:
            names = ", ".join(name_of(pid) for pid in v.players[:3])
            text = f"{text}{': ' + names if names else ''}"
        parts.append(text)
    return "; ".join(parts)


async def _player_namer(client: SleeperClient) -> Callable[[str], str]:
    try:
        players = await client.get_all_players()
    except UpstreamUnavailable as e:
        logger.warning("Player names unavailable for taxi flags: %s", e)
        players = {}

    def name_of(pid: str) -> str:
        data = players.get(pid)
        if not data:
            return pid
        return f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip() or pid

    return name_of


async def _validate_teams(
    client: SleeperClient, season: int, teams: List[TeamData], run_type: RunType, now: datetime
) -> List[object]:
    return await asyncio.gather(
        *[validate_taxi_for_roster(client, str(season), t.roster_id, run_type, now=now) for t in teams],
        return_exceptions=True,
    )


async def run_scheduled_check(
    client: SleeperClient,
    store: SnapshotStore,
    now: Optional[datetime] = None,
    run_type: Optional[RunType] = None,
) -> TaxiCronResult:
    """
    Validate every team for the current scheduled window and write one audit
    snapshot per team. Outside every window nothing is written.
    """
    now = now or _utcnow()
    run_type = run_type or pick_run_type(now)
    if run_type is None:
        logger.info("Taxi check skipped at %s: not in a run window", now.isoformat())
        return TaxiCronResult(skipped="not_window")

    season, week = await current_nfl_state(client, now)
    # Snapshots of the preseason file under week 1
    week = week or 1
    league_id = config.league_id_for_season(str(season)) or config.LEAGUE_IDS[config.CURRENT_SEASON]
    try:
        teams = await get_teams_data(client, league_id)
    except UpstreamUnavailable as e:
        logger.warning("Team list unavailable for %s run, recording degraded rows: %s", run_type.value, e)
        teams = []

    run_ts = now.isoformat()
    result = TaxiCronResult(run_type=run_type, season=season, week=week)

    def degraded(team_id: str) -> TaxiSnapshot:
        return TaxiSnapshot(
            season=season, week=week, run_type=run_type, run_ts=run_ts, team_id=team_id,
            status=ComplianceStatus.UNKNOWN, compliant=None, degraded=True,
        )

    if not teams:
        # Still record that a run happened
        for name in config.TEAM_NAMES:
            await store.write_snapshot(degraded(name))
            result.processed += 1
            result.degraded += 1
        return result

    outcomes = await _validate_teams(client, season, teams, run_type, now)
    for team, outcome in zip(teams, outcomes):
        if isinstance(outcome, TaxiValidateResult):
            snapshot = TaxiSnapshot(
                season=season,
                week=week,
                run_type=run_type,
                run_ts=run_ts,
                team_id=team.team_name,
                taxi_ids=[p.player_id for p in outcome.current.taxi],
                status=outcome.status,
                compliant=outcome.compliant,
                violations=outcome.violations + outcome.warnings,
                degraded=False,
            )
        else:
            if isinstance(outcome, BaseException):
                logger.warning("Taxi validation failed for %s: %r", team.team_name, outcome)
            snapshot = degraded(team.team_name)
            result.degraded += 1
        await store.write_snapshot(snapshot)
        result.processed += 1

    logger.info(
        "Taxi %s run for %s week %s: %d teams, %d degraded",
        run_type.value, season, week, result.processed, result.degraded,
    )
    return result


async def build_flags(client: SleeperClient, now: Optional[datetime] = None, run_type: Optional[RunType] = None) -> TaxiFlagsReport:
    """Validate every team now and sort their messages into actual and potential flags."""
    now = now or _utcnow()
    run_type = run_type or pick_run_type(now, default=RunType.ADMIN_RERUN)
    season, week = await current_nfl_state(client, now)
    report = TaxiFlagsReport(generated_at=now.isoformat(), run_type=run_type, season=season, week=week)

    league_id = config.league_id_for_season(str(season)) or config.LEAGUE_IDS[config.CURRENT_SEASON]
    try:
        teams = await get_teams_data(client, league_id)
    except UpstreamUnavailable as e:
        logger.warning("Team list unavailable for taxi flags: %s", e)
        return report

    official = is_enforcing(run_type)
    name_of = await _player_namer(client)
    outcomes = await _validate_teams(client, season, teams, run_type, now)
    for team, outcome in zip(teams, outcomes):
        if not isinstance(outcome, TaxiValidateResult):
            if isinstance(outcome, BaseException):
                logger.warning("Taxi validation failed for %s: %r", team.team_name, outcome)
            continue
        message = describe_violations(outcome.violations + outcome.warnings, name_of)
        if not message:
            continue
        flag = TaxiFlag(
            team=team.team_name,
            type="violation" if official else "warning",
            message=f"{team.team_name}: {message}",
        )
        if official or not outcome.compliant:
            report.actual.append(flag)
        else:
            report.potential.append(flag)
    return report


async def latest_report(client: SleeperClient, store: SnapshotStore, now: Optional[datetime] = None) -> TaxiFlagsReport:
    """
    Flags from the most recent recorded run. Without any snapshot, compute an
    on-demand admin rerun where every message counts as potential.
    """
    now = now or _utcnow()
    meta = await store.latest_run_meta()
    if meta is None:
        report = await build_flags(client, now, RunType.ADMIN_RERUN)
        for flag in report.actual:
            flag.type = "warning"
        report.potential = report.actual + report.potential
        report.actual = []
        return report

    rows = await store.snapshots_for_run(meta.season, meta.week, meta.run_type)
    name_of = await _player_namer(client)
    official = is_enforcing(meta.run_type)
    report = TaxiFlagsReport(generated_at=now.isoformat(), run_type=meta.run_type, season=meta.season, week=meta.week)
    for row in rows:
        if row.status != ComplianceStatus.NON_COMPLIANT:
            continue
        message = describe_violations(row.violations, name_of) or "Non-compliant taxi configuration"
        flag = TaxiFlag(
            team=row.team_id,
            type="violation" if official else "warning",
            message=f"{row.team_id}: {message}",
        )
        (report.actual if official else report.potential).append(flag)
    return report
