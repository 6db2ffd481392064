import asyncio
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .. import config
from ..client import SleeperClient
from ..models.sleeper import Roster, User


@dataclass
class TeamData:
    team_name: str
    roster_id: int
    owner_id: Optional[str]
    wins: int = 0
    losses: int = 0
    ties: int = 0
    fpts: float = 0.0
    fpts_against: float = 0.0
    players: List[str] = field(default_factory=list)


def normalize_name(name: Optional[str]) -> str:
    return re.sub(r"[^a-z0-9]+", " ", (name or "").lower()).strip()


def resolve_canonical_team_name(
    owner_id: Optional[str] = None,
    roster_team_name: Optional[str] = None,
    user_display_name: Optional[str] = None,
    username: Optional[str] = None,
    roster_id: Optional[int] = None,
    by_user_id: Mapping[str, str] = config.CANONICAL_TEAM_BY_USER_ID,
    aliases: Mapping[str, str] = config.TEAM_ALIASES,
) -> str:
    if owner_id and owner_id in by_user_id:
        return by_user_id[owner_id]

    canonical_by_norm = {normalize_name(name): name for name in config.TEAM_NAMES}
    for candidate in (roster_team_name, user_display_name, username):
        norm = normalize_name(candidate)
        if not norm:
            continue
        if norm in aliases:
            return aliases[norm]
        if norm in canonical_by_norm:
            return canonical_by_norm[norm]

    for candidate in (roster_team_name, user_display_name, username):
        if candidate:
            return candidate
    return f"Roster {roster_id}" if roster_id is not None else "Unknown Team"


async def get_teams_data(client: SleeperClient, league_id: str) -> List[TeamData]:
    """Rosters joined with their owners, named with canonical team names."""
    rosters_data, users_data = await asyncio.gather(
        client.get_league_rosters(league_id),
        client.get_league_users(league_id),
    )
    users_by_id: Dict[str, User] = {}
    for user_data in users_data or []:
        user = User(**user_data)
        users_by_id[user.user_id] = user

    teams = []
    for roster_data in rosters_data or []:
        roster = Roster(**roster_data)
        user = users_by_id.get(roster.owner_id or "")
        team_name = resolve_canonical_team_name(
            owner_id=roster.owner_id,
            roster_team_name=(roster.metadata or {}).get("team_name") or ((user.metadata or {}).get("team_name") if user else None),
            user_display_name=user.display_name if user else None,
            username=user.username if user else None,
            roster_id=roster.roster_id,
        )
        teams.append(TeamData(
            team_name=team_name,
            roster_id=roster.roster_id,
            owner_id=roster.owner_id,
            players=[pid for pid in roster.players or [] if pid],
            **roster.record(),
        ))
    return teams
