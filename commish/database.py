import aiosqlite
import asyncio

from . import config


async def get_db_connection(db_path: str = None):
    db = await aiosqlite.connect(db_path or config.DATABASE_URL)
    db.row_factory = aiosqlite.Row
    return db


async def create_tables(db_path: str = None):
    async with aiosqlite.connect(db_path or config.DATABASE_URL) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS api_cache (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                url TEXT UNIQUE NOT NULL,
                data TEXT NOT NULL,
                expires_at REAL NOT NULL
            )
        """)
        # One row per team for every scheduled or manual compliance run
        await db.execute("""
            CREATE TABLE IF NOT EXISTS taxi_snapshots (
                season INTEGER NOT NULL,
                week INTEGER NOT NULL,
                run_type TEXT NOT NULL,
                team_id TEXT NOT NULL,
                run_ts TEXT NOT NULL,
                taxi_ids TEXT NOT NULL,
                status TEXT NOT NULL,
                compliant INTEGER,
                violations TEXT NOT NULL,
                degraded INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (season, week, run_type, team_id)
            )
        """)
        await db.execute("CREATE INDEX IF NOT EXISTS taxi_snapshots_team_idx ON taxi_snapshots (team_id)")
        await db.execute("""
            CREATE TABLE IF NOT EXISTS taxi_observations (
                team_id TEXT PRIMARY KEY,
                players TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        await db.commit()

if __name__ == "__main__":
    asyncio.run(create_tables())
