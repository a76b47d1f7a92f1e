"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roomix.api import ops, roommates, universities, utilities
from roomix.api.errors import install_error_handlers
from roomix.domain.roommates.store import ensure_schema
from roomix.infra import postgres
from roomix.obs import init as obs_init
from roomix.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.uses_postgres():
		await postgres.init_pool()
		await ensure_schema()
	logger.info(
		"roomix api starting env=%s profile_store=%s", settings.environment, settings.profile_store_backend
	)
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Roomix API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(getattr(settings, "cors_allow_origins", []))
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else ["https://app.roomix.example"]

# Starlette disallows wildcard '*' with allow_credentials=True.
if "*" in allow_origins:
	allow_origins = (
		["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"]
		if settings.is_dev()
		else ["https://app.roomix.example"]
	)

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)

app.include_router(roommates.router, prefix="/api")
app.include_router(utilities.router, prefix="/api")
app.include_router(universities.router, prefix="/api")
app.include_router(ops.router, tags=["ops"])
