"""ASGI application entrypoint: FastAPI for HTTP, Socket.IO for realtime."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import socketio
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from badger_connect.api import ops, reputation
from badger_connect.api.errors import install_error_handlers
from badger_connect.domain.matching.sockets import MatchNamespace, set_namespace
from badger_connect.obs import init as obs_init
from badger_connect.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	logger.info(
		"badger connect backend starting port=%s namespace=%s",
		settings.port,
		match_namespace.namespace,
	)
	yield
	logger.info("badger connect backend stopping")


app = FastAPI(title="Badger Connect Realtime Core", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:5173"]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials="*" not in allow_origins,
	allow_methods=["GET", "POST"],
	allow_headers=["*"],
)

# Use the same allowed origins for Socket.IO as for the REST API
sio = socketio.AsyncServer(
	async_mode="asgi",
	cors_allowed_origins="*" if "*" in allow_origins else allow_origins,
)
match_namespace = MatchNamespace()
sio.register_namespace(match_namespace)
set_namespace(match_namespace)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
obs_init(app)

app.include_router(ops.router, tags=["ops"])
app.include_router(reputation.router, tags=["reputation"])


def run() -> None:
	uvicorn.run(socket_app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
	run()
