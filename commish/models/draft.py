from typing import List, Dict, Optional
from pydantic import BaseModel


class PickTransfer(BaseModel):
    """A single move of a draft pick between rosters in a trade."""
    trade_id: str
    timestamp: int
    from_roster_id: int
    to_roster_id: int
    from_team: Optional[str] = None
    to_team: Optional[str] = None


class PickClaim(BaseModel):
    season: str
    round: int
    original_roster_id: int
    owner_roster_id: int
    history: List[PickTransfer] = []

    @property
    def key(self) -> str:
        return f"{self.original_roster_id}-{self.round}"


class PickOwnership(BaseModel):
    season: str
    rounds: int
    roster_count: int
    roster_id_to_team: Dict[str, str] = {}
    ownership: Dict[str, PickClaim] = {}  # "<original_roster_id>-<round>" -> claim


class TeamRecord(BaseModel):
    wins: int = 0
    losses: int = 0
    ties: int = 0
    fpts: float = 0.0
    fpts_against: float = 0.0


class SlotEntry(BaseModel):
    slot: int
    roster_id: int
    team: str
    record: TeamRecord


class RoundPick(BaseModel):
    slot: int
    round: int
    original_team: str
    owner_team: str
    original_roster_id: int
    owner_roster_id: int
    history: List[PickTransfer] = []


class DraftRound(BaseModel):
    round: int
    picks: List[RoundPick]


class Leader(BaseModel):
    team: str
    count: int


class TeamPickTotals(BaseModel):
    team: str
    overall: int
    first_two: int


class DraftSummary(BaseModel):
    factoids: List[str]
    picks_per_team: List[TeamPickTotals]
    leaders: Dict[str, Optional[Leader]]


class TransferRow(BaseModel):
    round: int
    slot: Optional[int] = None
    trade_id: str
    timestamp: int
    from_team: str
    to_team: str
    original_team: str
    owner_team: str
    summary: Optional[str] = None


class DraftOrderResponse(BaseModel):
    season: str
    rounds: int
    roster_count: int
    generated_at: str
    slot_order: List[SlotEntry]
    rounds_data: List[DraftRound]
    summary: DraftSummary
    transfers: List[TransferRow]
