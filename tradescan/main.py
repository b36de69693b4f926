"""TradeScan — application entry point.

Boots the FastAPI internal server around a configured StrategyEngine.
Batches are produced by the caller's data layer and handed to
``publish_batch``.
"""

import logging

from fastapi import FastAPI

from tradescan.api.routers import configure_routers, router
from tradescan.config import AppConfig, load_config
from tradescan.engine import StrategyEngine

app = FastAPI(title="TradeScan Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("tradescan")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


def build_engine(config: AppConfig) -> StrategyEngine:
    """Build a fresh engine and wire it into the routers."""
    engine = StrategyEngine(config.engine)
    configure_routers(engine)
    return engine


def run() -> None:
    """Configure logging and serve the API with uvicorn."""
    import uvicorn

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    build_engine(config)

    logger.info("Starting TradeScan API on %s:%d", config.api_host, config.api_port)
    uvicorn.run(app, host=config.api_host, port=config.api_port, log_level="info")


if __name__ == "__main__":
    run()
