import hmac
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import aiosqlite
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config, database
from .cache import SqliteTTLCache
from .client import SleeperClient
from .errors import (
    INVALID_ROSTER,
    INVALID_RUN_TYPE,
    INVALID_SEASON,
    OWNERSHIP_UNAVAILABLE,
    SERVER_ERROR,
    InvalidRequest,
    LeagueError,
    Unauthorized,
    UpstreamUnavailable,
)
from .models.compliance import RunType, TaxiCronResult, TaxiFlagsReport, TaxiValidateResult
from .models.draft import DraftOrderResponse
from .services import draft_service, taxi_service
from .services.run_type import pick_run_type
from .services.snapshots import SnapshotStore

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

_client: Optional[SleeperClient] = None


def get_client() -> SleeperClient:
    global _client
    if _client is None:
        _client = SleeperClient(SqliteTTLCache(config.DATABASE_URL))
    return _client


def get_store() -> SnapshotStore:
    return SnapshotStore(config.DATABASE_URL)


def get_now() -> datetime:
    return datetime.now(timezone.utc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await database.create_tables()
    yield


app = FastAPI(lifespan=lifespan)

# Configure CORS for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LeagueError)
async def league_error_handler(request: Request, exc: LeagueError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "message": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": SERVER_ERROR})


def _parse_season(season: str) -> str:
    if not season.isdigit():
        raise InvalidRequest(INVALID_SEASON, f"Season must be a year, got {season!r}")
    return season


def _parse_run_type(run_type: Optional[str], now: datetime) -> RunType:
    if not run_type:
        return pick_run_type(now, default=RunType.ADMIN_RERUN)
    try:
        return RunType(run_type)
    except ValueError:
        raise InvalidRequest(INVALID_RUN_TYPE, f"Unknown run type {run_type!r}")


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/taxi/validate", response_model=TaxiValidateResult)
async def validate_taxi(
    season: str = config.CURRENT_SEASON,
    roster_id: Optional[str] = None,
    roster_id_alias: Optional[str] = Query(None, alias="rosterId"),
    run_type: Optional[str] = None,
    client: SleeperClient = Depends(get_client),
    store: SnapshotStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Check one roster's taxi squad against the league rules."""
    raw_roster = roster_id if roster_id is not None else roster_id_alias
    try:
        rid = int(raw_roster or "0")
    except ValueError:
        rid = 0
    if rid <= 0:
        raise InvalidRequest(INVALID_ROSTER, "rosterId must be a positive integer")
    season = _parse_season(season)
    kind = _parse_run_type(run_type, now)

    try:
        result = await taxi_service.validate_taxi_for_roster(client, season, rid, kind, now=now)
    except UpstreamUnavailable as e:
        logger.warning("Taxi validation for roster %s degraded: %s", rid, e)
        return taxi_service.unknown_result(season, rid, kind, "upstream_unavailable")
    if result is None:
        return taxi_service.unknown_result(season, rid, kind, "no_data")

    try:
        first_seen = await taxi_service.record_observations(
            store, result.team.team_name, [p.player_id for p in result.current.taxi], now
        )
    except aiosqlite.Error as e:
        logger.warning("Could not record taxi observations for %s: %s", result.team.team_name, e)
        first_seen = {}
    for player in result.current.taxi:
        player.observed_since = first_seen.get(player.player_id)
    return result


async def _run_cron(x_cron_secret: Optional[str], client: SleeperClient, store: SnapshotStore, now: datetime) -> TaxiCronResult:
    if not config.CRON_SECRET or not x_cron_secret or not hmac.compare_digest(x_cron_secret, config.CRON_SECRET):
        raise Unauthorized()
    return await taxi_service.run_scheduled_check(client, store, now)


@app.get("/taxi/cron", response_model=TaxiCronResult)
async def taxi_cron_get(
    x_cron_secret: Optional[str] = Header(None),
    client: SleeperClient = Depends(get_client),
    store: SnapshotStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return await _run_cron(x_cron_secret, client, store, now)


@app.post("/taxi/cron", response_model=TaxiCronResult)
async def taxi_cron_post(
    x_cron_secret: Optional[str] = Header(None),
    client: SleeperClient = Depends(get_client),
    store: SnapshotStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return await _run_cron(x_cron_secret, client, store, now)


@app.get("/taxi/flags", response_model=TaxiFlagsReport)
async def taxi_flags(
    client: SleeperClient = Depends(get_client),
    store: SnapshotStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Flags from the most recent recorded compliance run."""
    return await taxi_service.latest_report(client, store, now)


@app.get("/taxi/report", response_model=TaxiFlagsReport)
async def taxi_report(client: SleeperClient = Depends(get_client), now: datetime = Depends(get_now)):
    """Live flags for every team, classified by the current run window."""
    return await taxi_service.build_flags(client, now)


@app.post("/taxi/prune")
async def taxi_prune(
    client: SleeperClient = Depends(get_client),
    store: SnapshotStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Delete snapshots of earlier seasons, keeping the official runs."""
    season, _ = await taxi_service.current_nfl_state(client, now)
    deleted = await store.prune_prior_seasons_keep_official(season)
    return {"ok": True, "season": season, "deleted": deleted}


@app.get("/draft/ownership", response_model=DraftOrderResponse)
async def draft_ownership(client: SleeperClient = Depends(get_client), now: datetime = Depends(get_now)):
    """Next rookie draft order with current owner and trade history of every pick."""
    league_id = config.LEAGUE_IDS[config.CURRENT_SEASON]
    board = await draft_service.build_draft_board(client, league_id, now)
    if board is None:
        raise LeagueError(OWNERSHIP_UNAVAILABLE, "Pick ownership is unavailable right now", status_code=503)
    return board
