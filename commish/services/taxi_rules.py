"""
Taxi squad rule engine.

Everything here is a pure function of data already fetched from Sleeper, so
the rules can be exercised without the network. ``taxi_service`` does the
fetching and calls :func:`evaluate_taxi`.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from .. import config
from ..models.compliance import (
    ComplianceStatus,
    RunType,
    TaxiCounts,
    TaxiCurrent,
    TaxiLimits,
    TaxiPlayer,
    Violation,
    ViolationCode,
)
from ..models.sleeper import Player, Transaction
from .run_type import is_enforcing

INTAKE_TYPES = {"free_agent", "waiver", "trade", "draft"}

# A (season, week) point in league time; week 0 is the offseason
WeekPoint = Tuple[int, int]


@dataclass(frozen=True)
class Tenure:
    player_id: str
    via: str
    ts: int
    joined: WeekPoint


@dataclass(frozen=True)
class DraftSelection:
    season: str
    player_id: str
    roster_id: int
    ts: int = 0


@dataclass(frozen=True)
class LineupWeek:
    season: str
    week: int
    starters: FrozenSet[str]
    played: bool = True


@dataclass
class TaxiRosterState:
    roster_id: int
    taxi: List[str]
    starters: Set[str] = field(default_factory=set)
    reserve: Set[str] = field(default_factory=set)
    players: Mapping[str, Player] = field(default_factory=dict)
    tenures: Mapping[str, Tenure] = field(default_factory=dict)
    activations: Mapping[str, WeekPoint] = field(default_factory=dict)


@dataclass
class TaxiEvaluation:
    status: ComplianceStatus
    compliant: bool
    violations: List[Violation]
    warnings: List[Violation]
    current: TaxiCurrent


def to_via(tx_type: Optional[str]) -> str:
    return tx_type if tx_type in INTAKE_TYPES else "other"


def _point(season: str, week: Optional[int]) -> WeekPoint:
    try:
        season_num = int(season)
    except (TypeError, ValueError):
        season_num = 0
    return (season_num, int(week or 0))


def build_tenures(
    roster_id: int,
    transactions: Iterable[Tuple[str, Transaction]],
    drafted: Iterable[DraftSelection] = (),
) -> Dict[str, Tenure]:
    """
    Current tenure per player on ``roster_id``: the last join that was not
    followed by a drop. ``transactions`` pairs each transaction with its season.
    """
    events = []
    for season, tx in transactions:
        if tx.status != "complete":
            continue
        ts = int(tx.created or tx.status_updated or 0)
        events.append((ts, 1, tx.transaction_id, season, tx))
    for pick in drafted:
        if pick.roster_id == roster_id and pick.player_id:
            events.append((pick.ts, 0, pick.player_id, pick.season, pick))
    events.sort(key=lambda e: (e[0], e[1], e[2]))

    joins: Dict[str, Tenure] = {}
    for ts, _, _, season, event in events:
        if isinstance(event, DraftSelection):
            joins[event.player_id] = Tenure(event.player_id, "draft", ts, _point(season, 0))
            continue
        for player_id, from_roster in (event.drops or {}).items():
            if from_roster == roster_id:
                joins.pop(player_id, None)
        for player_id, to_roster in (event.adds or {}).items():
            if to_roster == roster_id:
                joins[player_id] = Tenure(player_id, to_via(event.type), ts, _point(season, event.leg))
    return joins


def find_activations(tenures: Mapping[str, Tenure], lineups: Iterable[LineupWeek]) -> Dict[str, WeekPoint]:
    """First played week each player started for the roster since joining it."""
    activations: Dict[str, WeekPoint] = {}
    for lineup in sorted(lineups, key=lambda lw: _point(lw.season, lw.week)):
        if not lineup.played:
            continue
        when = _point(lineup.season, lineup.week)
        for player_id in lineup.starters:
            tenure = tenures.get(player_id)
            if tenure is None or player_id in activations:
                continue
            if when >= tenure.joined:
                activations[player_id] = when
    return activations


def _position(players: Mapping[str, Player], player_id: str) -> str:
    player = players.get(player_id)
    return (player.position or "").upper() if player else ""


def _taxi_player(state: TaxiRosterState, player_id: str) -> TaxiPlayer:
    player = state.players.get(player_id)
    tenure = state.tenures.get(player_id)
    activated = state.activations.get(player_id)
    return TaxiPlayer(
        player_id=player_id,
        name=player.display_name if player else None,
        position=player.position if player else None,
        intake=tenure.via if tenure else None,
        joined_at=datetime.fromtimestamp(tenure.ts / 1000, tz=timezone.utc).isoformat() if tenure and tenure.ts else None,
        activated_at=f"{activated[0]}-W{activated[1]}" if activated else None,
    )


def evaluate_taxi(
    state: TaxiRosterState,
    run_type: RunType = RunType.ADMIN_RERUN,
    limits: Optional[TaxiLimits] = None,
    allowed_intake: FrozenSet[str] = config.ALLOWED_TAXI_INTAKE,
) -> TaxiEvaluation:
    limits = limits or TaxiLimits(max_slots=config.MAX_TAXI_SIZE, max_qb=config.MAX_TAXI_QB)
    taxi = [pid for pid in dict.fromkeys(state.taxi) if pid]
    violations: List[Violation] = []
    warnings: List[Violation] = []

    if len(taxi) > limits.max_slots:
        violations.append(Violation(
            code=ViolationCode.TOO_MANY_ON_TAXI,
            detail=f">{limits.max_slots} players on taxi",
            players=list(taxi),
        ))

    qbs = [pid for pid in taxi if _position(state.players, pid) == "QB"]
    if len(qbs) > limits.max_qb:
        violations.append(Violation(
            code=ViolationCode.TOO_MANY_QBS,
            detail=f"{len(qbs)} QBs on taxi (limit {limits.max_qb})",
            players=qbs,
        ))

    invalid_intake = []
    for pid in taxi:
        tenure = state.tenures.get(pid)
        if tenure is None or tenure.via not in allowed_intake:
            invalid_intake.append(pid)
    if invalid_intake:
        violations.append(Violation(
            code=ViolationCode.INVALID_INTAKE,
            detail="Taxi intake must be " + "/".join(sorted(allowed_intake)),
            players=invalid_intake,
        ))

    inconsistent = [pid for pid in taxi if pid in state.starters or pid in state.reserve]
    if inconsistent:
        violations.append(Violation(
            code=ViolationCode.ROSTER_INCONSISTENT,
            detail="Taxi conflicts with starters/IR",
            players=inconsistent,
        ))

    boomerang = [pid for pid in taxi if pid in state.activations]
    if boomerang:
        entry = Violation(
            code=ViolationCode.BOOMERANG_ACTIVE_PLAYER,
            detail="Previously active this tenure on taxi",
            players=boomerang,
        )
        # Only the official Sunday night run enforces it
        if is_enforcing(run_type):
            violations.append(entry)
        else:
            warnings.append(entry)

    compliant = not violations
    current = TaxiCurrent(
        taxi=[_taxi_player(state, pid) for pid in taxi],
        counts=TaxiCounts(total=len(taxi), qbs=len(qbs)),
    )
    return TaxiEvaluation(
        status=ComplianceStatus.COMPLIANT if compliant else ComplianceStatus.NON_COMPLIANT,
        compliant=compliant,
        violations=violations,
        warnings=warnings,
        current=current,
    )
