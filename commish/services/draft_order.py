"""
Next-draft slot order and the pick ownership board built on top of it.

Slots go to non-playoff teams first (worst record first), then playoff teams
by the round they were knocked out in, then the runner-up and the champion.
Without a usable winners bracket the order falls back to standings.
"""
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .. import config
from ..models.draft import (
    DraftOrderResponse,
    DraftRound,
    DraftSummary,
    Leader,
    PickOwnership,
    RoundPick,
    SlotEntry,
    TeamPickTotals,
    TeamRecord,
    TransferRow,
)
from ..models.sleeper import BracketGame
from .teams import TeamData


def standing_key(team: TeamData) -> Tuple:
    """Worse regular-season standing sorts first."""
    return (team.wins, -team.losses, team.fpts, team.fpts_against, team.team_name)


def _finalists(bracket: Sequence[BracketGame]) -> Tuple[Optional[int], Optional[int], Optional[int], Optional[int]]:
    """Champion, runner-up, third-place winner and loser from the last two rounds."""
    if not bracket:
        return None, None, None, None
    max_round = max(g.r for g in bracket)
    semis = [g for g in bracket if g.r == max_round - 1 and g.t1 is not None and g.t2 is not None]
    semi_winners = {g.w for g in semis if g.w is not None}
    semi_losers = {g.loser for g in semis if g.loser is not None}
    last_round = [g for g in bracket if g.r == max_round and g.t1 is not None and g.t2 is not None and g.w is not None]

    final = next((g for g in last_round if g.t1 in semi_winners and g.t2 in semi_winners), None)
    third = next((g for g in last_round if g.t1 in semi_losers and g.t2 in semi_losers), None)
    return (
        final.w if final else None,
        final.loser if final else None,
        third.w if third else None,
        third.loser if third else None,
    )


def compute_slot_order(teams: Sequence[TeamData], bracket: Sequence[BracketGame] = ()) -> List[SlotEntry]:
    by_roster = {t.roster_id: t for t in teams}
    participants = {rid for g in bracket for rid in (g.t1, g.t2) if rid is not None}
    champion, runner_up, third_winner, third_loser = _finalists(bracket)

    ordered: List[TeamData]
    if participants and champion in by_roster and runner_up in by_roster:
        eliminated: Dict[int, int] = {}
        for g in sorted(bracket, key=lambda g: g.r):
            if g.t1 is not None and g.t2 is not None and g.w is not None:
                loser = g.loser
                if loser is not None and loser not in eliminated:
                    eliminated[loser] = g.r

        non_playoff = sorted((t for t in teams if t.roster_id not in participants), key=standing_key)
        playoff = [
            t for t in teams
            if t.roster_id in participants and t.roster_id not in (champion, runner_up)
        ]
        # Earlier elimination picks earlier; third-place loser before winner
        thirds = [rid for rid in (third_loser, third_winner) if rid in by_roster]
        rest = sorted(
            (t for t in playoff if t.roster_id not in thirds),
            key=lambda t: (eliminated.get(t.roster_id, 10 ** 6), standing_key(t)),
        )
        ordered = non_playoff + rest + [by_roster[rid] for rid in thirds] + [by_roster[runner_up], by_roster[champion]]
    else:
        ordered = sorted(teams, key=standing_key)

    return [
        SlotEntry(
            slot=index,
            roster_id=team.roster_id,
            team=team.team_name,
            record=TeamRecord(
                wins=team.wins, losses=team.losses, ties=team.ties,
                fpts=team.fpts, fpts_against=team.fpts_against,
            ),
        )
        for index, team in enumerate(ordered, start=1)
    ]


def _leader(totals: Dict[str, Dict[str, int]], field: str) -> Optional[Leader]:
    if not totals:
        return None
    team, counts = sorted(totals.items(), key=lambda item: (-item[1][field], -item[1]["overall"], item[0]))[0]
    return Leader(team=team, count=counts[field])


def summarize(ownership: PickOwnership, team_name: Mapping[int, str], teams_in_order: Sequence[str]) -> DraftSummary:
    totals: Dict[str, Dict[str, int]] = {}

    def bucket(team: str) -> Dict[str, int]:
        return totals.setdefault(team, {"overall": 0, "first_two": 0, "r3": 0, "r4": 0})

    for claim in ownership.ownership.values():
        counts = bucket(team_name.get(claim.owner_roster_id) or f"Roster {claim.owner_roster_id}")
        counts["overall"] += 1
        if claim.round <= 2:
            counts["first_two"] += 1
        elif claim.round == 3:
            counts["r3"] += 1
        elif claim.round == 4:
            counts["r4"] += 1
    for team in teams_in_order:
        bucket(team)

    leaders = {
        "most_overall": _leader(totals, "overall"),
        "most_first_two": _leader(totals, "first_two"),
        "most_r3": _leader(totals, "r3"),
        "most_r4": _leader(totals, "r4"),
    }
    factoids = []
    if leaders["most_overall"] and leaders["most_overall"].count > 0:
        factoids.append(f"{leaders['most_overall'].team} lead the war chest with {leaders['most_overall'].count} total picks.")
    if leaders["most_first_two"] and leaders["most_first_two"].count > 0:
        factoids.append(f"{leaders['most_first_two'].team} control {leaders['most_first_two'].count} premium picks in rounds 1-2.")
    if leaders["most_r3"] and leaders["most_r3"].count > 0:
        factoids.append(f"{leaders['most_r3'].team} have the most 3rd-round picks ({leaders['most_r3'].count}).")
    if leaders["most_r4"] and leaders["most_r4"].count > 0:
        factoids.append(f"{leaders['most_r4'].team} have the most 4th-round picks ({leaders['most_r4'].count}).")
    if all(claim.owner_roster_id == claim.original_roster_id for claim in ownership.ownership.values()):
        factoids = ["No trades yet - everyone still holds their original picks."]

    picks_per_team = sorted(
        (TeamPickTotals(team=team, overall=c["overall"], first_two=c["first_two"]) for team, c in totals.items()),
        key=lambda t: (-t.overall, -t.first_two, t.team),
    )
    return DraftSummary(factoids=factoids, picks_per_team=picks_per_team, leaders=leaders)


def build_draft_order(
    ownership: PickOwnership,
    teams: Sequence[TeamData],
    bracket: Sequence[BracketGame] = (),
    trade_summaries: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> DraftOrderResponse:
    names: Dict[int, str] = {int(rid): name for rid, name in ownership.roster_id_to_team.items()}
    for team in teams:
        names.setdefault(team.roster_id, team.team_name)

    def name(roster_id: int) -> str:
        return names.get(roster_id) or f"Roster {roster_id}"

    slot_order = compute_slot_order(teams, bracket)
    slot_by_roster = {entry.roster_id: entry.slot for entry in slot_order}
    rounds_shown = min(config.DRAFT_ROUNDS_SHOWN, ownership.rounds)

    rounds_data = []
    for rd in range(1, rounds_shown + 1):
        picks = []
        for entry in slot_order:
            claim = ownership.ownership.get(f"{entry.roster_id}-{rd}")
            owner = claim.owner_roster_id if claim else entry.roster_id
            picks.append(RoundPick(
                slot=entry.slot,
                round=rd,
                original_team=name(entry.roster_id),
                owner_team=name(owner),
                original_roster_id=entry.roster_id,
                owner_roster_id=owner,
                history=claim.history if claim else [],
            ))
        rounds_data.append(DraftRound(round=rd, picks=picks))

    transfers = []
    for claim in ownership.ownership.values():
        for step in claim.history:
            transfers.append(TransferRow(
                round=claim.round,
                slot=slot_by_roster.get(claim.original_roster_id),
                trade_id=step.trade_id,
                timestamp=step.timestamp,
                from_team=step.from_team or name(step.from_roster_id),
                to_team=step.to_team or name(step.to_roster_id),
                original_team=name(claim.original_roster_id),
                owner_team=name(claim.owner_roster_id),
                summary=(trade_summaries or {}).get(step.trade_id),
            ))
    transfers.sort(key=lambda t: (-t.timestamp, t.trade_id, t.round))

    return DraftOrderResponse(
        season=ownership.season,
        rounds=rounds_shown,
        roster_count=ownership.roster_count,
        generated_at=(now or datetime.now(timezone.utc)).isoformat(),
        slot_order=slot_order,
        rounds_data=rounds_data,
        summary=summarize(ownership, names, [entry.team for entry in slot_order]),
        transfers=transfers,
    )
