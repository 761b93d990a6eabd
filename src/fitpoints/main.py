# src/fitpoints/main.py
import asyncio
import os

import uvicorn
from sqlalchemy import text

from .api import create_app
from .catalog import build_catalog
from .config import settings
from .metrics import start_metrics_server
from .models.database import async_session, check_db_connection, engine, init_db, load_store
from .service import ChallengeEngine
from .utils.logging import setup_logger

logger = setup_logger(__name__, level=settings.log_level)

async def wait_for_db(max_retries: int = 5, retry_interval: int = 5):
    """Wait for database to be ready."""
    for i in range(max_retries):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                logger.info("Database is ready")
                return
        except Exception as e:
            if i == max_retries - 1:
                raise
            logger.warning(f"Database not ready, retrying in {retry_interval} seconds: {e}")
            await asyncio.sleep(retry_interval)

async def build_engine() -> ChallengeEngine:
    """Load the persisted ledger into a fresh engine."""
    await wait_for_db()
    await init_db()
    if not await check_db_connection():
        raise RuntimeError("Database connection failed")

    catalog = build_catalog()
    async with async_session() as db:
        store = await load_store(db, catalog)
    # pooled connections belong to this loop, uvicorn runs its own
    await engine.dispose()
    logger.info(f"Scoring with {catalog.mode}")
    return ChallengeEngine(store=store, catalog=catalog)

def create_application():
    challenge = asyncio.run(build_engine())
    if settings.metrics_enabled:
        start_metrics_server()
    app = create_app(challenge, session_factory=async_session)
    logger.info("Application startup completed successfully")
    return app

if __name__ == "__main__":
    uvicorn.run(create_application(), host="0.0.0.0", port=int(os.environ.get("PORT", 8000)))
