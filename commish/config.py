import os
from typing import Dict, FrozenSet, List, Optional

# ====== Sleeper API ======
SLEEPER_API_URL: str = os.environ.get("SLEEPER_API_URL", "https://api.sleeper.app/v1")
HTTP_TIMEOUT_SECONDS: float = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "15"))

# Cache TTLs for upstream reads
NFL_STATE_TTL_SECONDS: int = 10 * 60
PLAYERS_TTL_SECONDS: int = 12 * 60 * 60
LEAGUE_TTL_SECONDS: int = 5 * 60
HISTORY_TTL_SECONDS: int = 7 * 24 * 60 * 60

# ====== Storage ======
DATABASE_URL: str = os.environ.get("DATABASE_URL", "commish.db")

# ====== App ======
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
CRON_SECRET: str = os.environ.get("CRON_SECRET", "")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

# ====== League ======
CURRENT_SEASON: str = os.environ.get("CURRENT_SEASON", "2026")

LEAGUE_IDS: Dict[str, str] = {
    CURRENT_SEASON: os.environ.get("COMMISH_LEAGUE_ID", "1312872384503484416"),
    "2025": "1205237529570193408",
    "2024": "1116504942988107776",
    "2023": "991521604930772992",
}

REGULAR_SEASON_WEEKS: int = 17
TRANSACTION_WEEKS: int = 18
DEFAULT_DRAFT_ROUNDS: int = 4
DRAFT_ROUNDS_SHOWN: int = 4

# ====== Taxi squad rules ======
MAX_TAXI_SIZE: int = int(os.environ.get("MAX_TAXI_SIZE", "3"))
MAX_TAXI_QB: int = int(os.environ.get("MAX_TAXI_QB", "1"))
ALLOWED_TAXI_INTAKE: FrozenSet[str] = frozenset(
    via.strip()
    for via in os.environ.get("ALLOWED_TAXI_INTAKE", "free_agent,trade,draft").split(",")
    if via.strip()
)

# Scheduled compliance checks run in league-local time
LEAGUE_TIMEZONE: str = os.environ.get("LEAGUE_TIMEZONE", "America/New_York")
RUN_WINDOW_GRACE_MINUTES: int = 5

# ====== Canonical team names ======
# Use these everywhere; never display Sleeper usernames or real names.
TEAM_NAMES: List[str] = [
    "Belltown Raptors",
    "Double Trouble",
    "Elemental Heroes",
    "Mt. Lebanon Cake Eaters",
    "Belleview Badgers",
    "BeerNeverBrokeMyHeart",
    "Detroit Dawgs",
    "bop pop",
    "Minshew's Maniacs",
    "Red Pandas",
    "The Lone Ginger",
    "Bimg Bamg Boomg",
]

# Sleeper user_id -> canonical team name
CANONICAL_TEAM_BY_USER_ID: Dict[str, str] = {}

# Known Sleeper team/display names (normalized) -> canonical team name
TEAM_ALIASES: Dict[str, str] = {}


def league_id_for_season(season: str) -> Optional[str]:
    return LEAGUE_IDS.get(str(season))
