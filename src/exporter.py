import logging
from contextlib import asynccontextmanager
from typing import List

import uvicorn
from fastapi import FastAPI, Response
from fastapi.responses import ORJSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from config.config import Config
from config.logging_config import setup_logging
from contracts.target import Target
from core.metrics_manager import MetricsManager
from core.probe_executor import ProbeExecutor, build_http_client
from core.probe_manager import ProbeManager, targets_from_config

setup_logging()
logger = logging.getLogger(__name__)

metrics_manager = MetricsManager()
targets = targets_from_config()


@asynccontextmanager
async def lifespan(app):
    client = build_http_client()
    executor = ProbeExecutor(client, metrics_manager, timeout=Config.PROBE_TIMEOUT_SECONDS)
    probe_manager = ProbeManager(
        targets, executor, max_concurrent_probes=Config.GLOBAL_SLOT_SIZE
    )
    app.state.http_client = client
    app.state.probe_manager = probe_manager
    await probe_manager.start()
    try:
        yield
    finally:
        await probe_manager.stop()
        await client.aclose()


app = FastAPI(lifespan=lifespan, default_response_class=ORJSONResponse)


@app.get(Config.METRICS_PATH)
def metrics():
    return Response(
        generate_latest(metrics_manager.registry), media_type=CONTENT_TYPE_LATEST
    )


@app.get("/targets", response_model=List[Target])
async def list_targets():
    return targets


def main():
    logger.info(
        f"Serving metrics on {Config.METRICS_HOST}:{Config.METRICS_PORT}{Config.METRICS_PATH}"
    )
    uvicorn.run(
        app, host=Config.METRICS_HOST, port=Config.METRICS_PORT, log_config=None
    )


if __name__ == "__main__":
    main()
