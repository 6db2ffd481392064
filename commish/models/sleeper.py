from typing import List, Dict, Any, Optional
from pydantic import BaseModel


class User(BaseModel):
    user_id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class League(BaseModel):
    league_id: str
    name: Optional[str] = None
    season: str
    total_rosters: Optional[int] = None
    status: Optional[str] = None
    previous_league_id: Optional[str] = None
    settings: Dict[str, Any] = {}
    roster_positions: List[str] = []


class Roster(BaseModel):
    roster_id: int
    league_id: Optional[str] = None
    owner_id: Optional[str] = None
    players: Optional[List[str]] = None
    starters: Optional[List[str]] = None
    reserve: Optional[List[str]] = None
    taxi: Optional[List[str]] = None
    settings: Dict[str, Any] = {}
    metadata: Optional[Dict[str, Any]] = None

    def record(self) -> Dict[str, float]:
        """Regular-season record with decimal points folded in."""
        s = self.settings or {}
        return {
            "wins": int(s.get("wins") or 0),
            "losses": int(s.get("losses") or 0),
            "ties": int(s.get("ties") or 0),
            "fpts": float(s.get("fpts") or 0) + float(s.get("fpts_decimal") or 0) / 100,
            "fpts_against": float(s.get("fpts_against") or 0) + float(s.get("fpts_against_decimal") or 0) / 100,
        }


class Draft(BaseModel):
    draft_id: str
    league_id: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    season: Optional[str] = None
    start_time: Optional[int] = None  # Unix timestamp in ms
    settings: Dict[str, Any] = {}
    metadata: Optional[Dict[str, Any]] = None


class Pick(BaseModel):
    player_id: Optional[str] = None
    pick_no: int
    round: int
    roster_id: Optional[int] = None
    draft_id: str
    metadata: Optional[Dict[str, Any]] = None


class Player(BaseModel):
    player_id: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    team: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.full_name


class DraftPickMovement(BaseModel):
    season: str
    round: int
    roster_id: int  # ORIGINAL owner of the pick (who initially had this draft slot)
    owner_id: int   # NEW owner after this trade (who's receiving the pick)
    previous_owner_id: Optional[int] = None  # Roster TRADING AWAY the pick in this transaction
    league_id: Optional[str] = None


class Transaction(BaseModel):
    transaction_id: str
    league_id: Optional[str] = None
    type: str
    status: str
    created: Optional[int] = None  # Unix timestamp in ms
    status_updated: Optional[int] = None  # Unix timestamp in ms
    leg: Optional[int] = None  # week the transaction was processed in
    adds: Optional[Dict[str, int]] = None
    drops: Optional[Dict[str, int]] = None
    roster_ids: Optional[List[int]] = None
    draft_picks: Optional[List[DraftPickMovement]] = None
    metadata: Optional[Dict[str, Any]] = None

    @property
    def completed_at(self) -> int:
        return int(self.status_updated or self.created or 0)


class TradedPick(BaseModel):
    season: str
    round: int
    roster_id: int  # Original owner
    owner_id: int   # Current owner
    previous_owner_id: Optional[int] = None


class Matchup(BaseModel):
    matchup_id: Optional[int] = None
    league_id: Optional[str] = None
    week: Optional[int] = None
    roster_id: int
    points: Optional[float] = None
    custom_points: Optional[float] = None
    players: Optional[List[str]] = None
    starters: Optional[List[str]] = None

    @property
    def scored(self) -> float:
        if self.custom_points is not None:
            return float(self.custom_points)
        return float(self.points or 0)


class NFLState(BaseModel):
    season: Optional[str] = None
    week: Optional[int] = None
    season_type: Optional[str] = None
    leg: Optional[int] = None


class BracketGame(BaseModel):
    r: int  # round (1 = first round)
    m: Optional[int] = None
    t1: Optional[int] = None
    t2: Optional[int] = None
    w: Optional[int] = None
    l: Optional[int] = None

    @property
    def loser(self) -> Optional[int]:
        if self.l is not None:
            return self.l
        if self.w is None or self.t1 is None or self.t2 is None:
            return None
        return self.t2 if self.w == self.t1 else self.t1
