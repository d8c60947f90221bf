"""FastAPI entry point for the chain monitor backend service."""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from chainwatch.api import api_router
from chainwatch.config import get_settings
from chainwatch.stream.monitor import get_monitor, shutdown_monitor


LOGGER = logging.getLogger(__name__)

settings = get_settings()

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

app = FastAPI(
	title="Chain Watch Backend",
	version="1.0.0",
	description="Streams Ethereum and Bitcoin transactions and large-transfer alerts.",
)

app.add_middleware(
	CORSMiddleware,
	allow_origins=list(settings.cors_allow_origins),
	allow_credentials=False,
	allow_methods=["*"],
	allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/api/health")
def healthcheck() -> Dict[str, str]:
	"""Basic readiness probe."""
	return {"status": "ok"}


@app.on_event("startup")
async def startup_event() -> None:
	"""Start both chain scanners on the server's event loop."""
	if not settings.scanners_enabled:
		LOGGER.info("Scanners disabled via SCANNERS_ENABLED")
		return
	get_monitor().start()


@app.on_event("shutdown")
async def shutdown_event() -> None:
	"""Cancel the scanning loops when the service stops."""
	await shutdown_monitor()


# Mounted last so it only catches paths the API did not claim.
if settings.frontend_dir.is_dir():
	LOGGER.info("Serving frontend from %s", settings.frontend_dir)
	app.mount("/", StaticFiles(directory=settings.frontend_dir, html=True), name="frontend")
