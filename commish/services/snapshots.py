"""Audit trail of compliance runs and taxi observations, stored in sqlite."""
import json
from typing import Any, Dict, List, Optional

from .. import config
from ..database import get_db_connection
from ..models.compliance import RunType, TaxiRunMeta, TaxiSnapshot, Violation


class SnapshotStore:
    def __init__(self, db_path: str = None):
        self.db_path = db_path or config.DATABASE_URL

    async def write_snapshot(self, snapshot: TaxiSnapshot) -> None:
        """Upsert one team's row for a run; the latest write wins."""
        db = await get_db_connection(self.db_path)
        try:
            await db.execute(
                """
                INSERT INTO taxi_snapshots
                    (season, week, run_type, team_id, run_ts, taxi_ids, status, compliant, violations, degraded)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (season, week, run_type, team_id) DO UPDATE SET
                    run_ts = excluded.run_ts,
                    taxi_ids = excluded.taxi_ids,
                    status = excluded.status,
                    compliant = excluded.compliant,
                    violations = excluded.violations,
                    degraded = excluded.degraded
                """,
                (
                    snapshot.season,
                    snapshot.week,
                    snapshot.run_type.value,
                    snapshot.team_id,
                    snapshot.run_ts,
                    json.dumps(snapshot.taxi_ids),
                    snapshot.status.value,
                    None if snapshot.compliant is None else int(snapshot.compliant),
                    json.dumps([v.model_dump(mode="json") for v in snapshot.violations]),
                    int(snapshot.degraded),
                ),
            )
            await db.commit()
        finally:
            await db.close()

    async def latest_run_meta(self) -> Optional[TaxiRunMeta]:
        db = await get_db_connection(self.db_path)
        try:
            cursor = await db.execute(
                "SELECT season, week, run_type, run_ts FROM taxi_snapshots ORDER BY run_ts DESC LIMIT 1"
            )
            row = await cursor.fetchone()
        finally:
            await db.close()
        if not row:
            return None
        return TaxiRunMeta(season=row["season"], week=row["week"], run_type=RunType(row["run_type"]), run_ts=row["run_ts"])

    async def snapshots_for_run(self, season: int, week: int, run_type: RunType) -> List[TaxiSnapshot]:
        db = await get_db_connection(self.db_path)
        try:
            cursor = await db.execute(
                "SELECT * FROM taxi_snapshots WHERE season = ? AND week = ? AND run_type = ? ORDER BY team_id",
                (season, week, run_type.value),
            )
            rows = await cursor.fetchall()
        finally:
            await db.close()
        return [
            TaxiSnapshot(
                season=row["season"],
                week=row["week"],
                run_type=RunType(row["run_type"]),
                run_ts=row["run_ts"],
                team_id=row["team_id"],
                taxi_ids=json.loads(row["taxi_ids"]),
                status=row["status"],
                compliant=None if row["compliant"] is None else bool(row["compliant"]),
                violations=[Violation(**v) for v in json.loads(row["violations"])],
                degraded=bool(row["degraded"]),
            )
            for row in rows
        ]

    async def prune_prior_seasons_keep_official(self, current_season: int) -> int:
        """Drop rows from earlier seasons, keeping each official Sunday night run."""
        db = await get_db_connection(self.db_path)
        try:
            cursor = await db.execute(
                "DELETE FROM taxi_snapshots WHERE season < ? AND run_type != ?",
                (current_season, RunType.SUN_PM_OFFICIAL.value),
            )
            await db.commit()
            return cursor.rowcount
        finally:
            await db.close()

    async def get_observations(self, team_id: str) -> Dict[str, Dict[str, Any]]:
        db = await get_db_connection(self.db_path)
        try:
            cursor = await db.execute("SELECT players FROM taxi_observations WHERE team_id = ?", (team_id,))
            row = await cursor.fetchone()
        finally:
            await db.close()
        return json.loads(row["players"]) if row else {}

    async def set_observations(self, team_id: str, players: Dict[str, Dict[str, Any]], updated_at: str) -> None:
        db = await get_db_connection(self.db_path)
        try:
            await db.execute(
                "INSERT OR REPLACE INTO taxi_observations (team_id, players, updated_at) VALUES (?, ?, ?)",
                (team_id, json.dumps(players), updated_at),
            )
            await db.commit()
        finally:
            await db.close()
