"""
Replay completed trades to find who currently owns each future draft pick.

Picks are keyed by (original roster, round) for a single draft season. Every
roster starts out owning its own picks; each trade that moves a pick
overwrites the owner, so the most recent completed trade wins.
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..models.draft import PickClaim, PickOwnership, PickTransfer
from ..models.sleeper import TradedPick, Transaction

logger = logging.getLogger(__name__)

PickKey = Tuple[int, int]  # (original_roster_id, round)


def _id_sort_key(transaction_id: str) -> Tuple[int, int, str]:
    # Sleeper ids are numeric strings; compare numerically when possible
    if transaction_id.isdigit():
        return (0, int(transaction_id), "")
    return (1, 0, transaction_id)


def chronological(trades: Iterable[Transaction]) -> List[Transaction]:
    """Completed trades ordered by completion time, then transaction id."""
    complete = [t for t in trades if t.status == "complete" and t.type == "trade"]
    return sorted(complete, key=lambda t: (t.completed_at, _id_sort_key(t.transaction_id)))


class PickOwnershipLedger:
    """Current owner and transfer history for every pick of one draft season."""

    def __init__(self, roster_ids: Iterable[int], season: str, rounds: int):
        self.season = str(season)
        self.rounds = rounds
        self.roster_ids = sorted(set(roster_ids))
        self.owners: Dict[PickKey, int] = {}
        self.history: Dict[PickKey, List[PickTransfer]] = {}
        for roster_id in self.roster_ids:
            for rd in range(1, rounds + 1):
                self.owners[(roster_id, rd)] = roster_id
                self.history[(roster_id, rd)] = []

    def seed(self, traded_picks: Iterable[TradedPick]) -> None:
        """Start from the upstream traded-picks snapshot before replaying trades."""
        for tp in traded_picks:
            key = (tp.roster_id, tp.round)
            if str(tp.season) != self.season or key not in self.owners:
                continue
            if tp.owner_id not in self.roster_ids:
                logger.warning("Ignoring traded pick %s owned by unknown roster %s", key, tp.owner_id)
                continue
            self.owners[key] = tp.owner_id

    def apply(self, trades: Iterable[Transaction]) -> None:
        """
        Replay trades in completion order. Trades must be fed in chronological
        order across calls; within one call they are sorted here.
        """
        for trade in chronological(trades):
            timestamp = trade.completed_at
            for move in trade.draft_picks or []:
                if str(move.season) != self.season:
                    continue
                key = (move.roster_id, move.round)
                if key not in self.owners:
                    logger.warning(
                        "Trade %s moves pick %s-%s of unknown roster %s",
                        trade.transaction_id, move.season, move.round, move.roster_id,
                    )
                    continue
                previous = move.previous_owner_id
                if previous is None or previous == move.owner_id:
                    continue
                if move.owner_id not in self.roster_ids:
                    logger.warning("Trade %s sends a pick to unknown roster %s", trade.transaction_id, move.owner_id)
                    continue
                self.owners[key] = move.owner_id
                self.history[key].append(PickTransfer(
                    trade_id=str(trade.transaction_id),
                    timestamp=timestamp,
                    from_roster_id=previous,
                    to_roster_id=move.owner_id,
                ))

    def owner_of(self, original_roster_id: int, round: int) -> int:
        return self.owners[(original_roster_id, round)]

    def to_ownership(self, team_names: Optional[Mapping[int, str]] = None) -> PickOwnership:
        names = dict(team_names or {})

        def name(roster_id: int) -> str:
            return names.get(roster_id) or f"Roster {roster_id}"

        ownership: Dict[str, PickClaim] = {}
        for (roster_id, rd), owner in sorted(self.owners.items()):
            history = [
                step.model_copy(update={"from_team": name(step.from_roster_id), "to_team": name(step.to_roster_id)})
                for step in self.history[(roster_id, rd)]
            ]
            claim = PickClaim(
                season=self.season,
                round=rd,
                original_roster_id=roster_id,
                owner_roster_id=owner,
                history=history,
            )
            ownership[claim.key] = claim

        return PickOwnership(
            season=self.season,
            rounds=self.rounds,
            roster_count=len(self.roster_ids),
            roster_id_to_team={str(rid): name(rid) for rid in self.roster_ids},
            ownership=ownership,
        )


def resolve_ownership(
    roster_ids: Iterable[int],
    trades: Iterable[Transaction],
    season: str,
    rounds: int,
    traded_picks: Optional[Iterable[TradedPick]] = None,
    team_names: Optional[Mapping[int, str]] = None,
) -> PickOwnership:
    ledger = PickOwnershipLedger(roster_ids, season, rounds)
    if traded_picks:
        ledger.seed(traded_picks)
    ledger.apply(trades)
    return ledger.to_ownership(team_names)
