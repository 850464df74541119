"""FastAPI endpoint RuneLite posts its status to (push mode)."""

from __future__ import annotations

import json
import logging
import socket

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from runedeck.api.schemas import parse_state
from runedeck.core.store import StateStore

log = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def create_app(store: StateStore) -> FastAPI:
    app = FastAPI(title="RuneDeck state server", version="0.1.0", docs_url=None,
                  redoc_url=None, openapi_url=None, redirect_slashes=False)

    @app.middleware("http")
    async def cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        # Unknown paths and wrong methods look the same to RuneLite.
        return JSONResponse({"error": "Not found"}, status_code=404)

    @app.post("/state")
    async def post_state(request: Request):
        if request.url.query:
            # /state only; a query string makes it a different URL.
            return JSONResponse({"error": "Not found"}, status_code=404)
        raw = await request.body()
        try:
            body = json.loads(raw)
            snapshot = parse_state(body)
        except (ValueError, ValidationError) as e:
            log.debug("http: rejected state body: %s", e)
            return JSONResponse({"error": "Invalid JSON"}, status_code=400)
        store.replace(snapshot)
        return JSONResponse({"success": True})

    return app


def bind_socket(host: str, port: int, retries: int = 10) -> socket.socket:
    """Bind the first free port in ``port .. port+retries``."""
    last_error: OSError | None = None
    for candidate in range(port, port + retries + 1):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((host, candidate))
        except OSError as e:
            sock.close()
            last_error = e
            log.warning("http: port %d unavailable (%s), trying %d", candidate, e, candidate + 1)
            continue
        return sock
    raise OSError(f"no free port in {port}..{port + retries}") from last_error


class StateServer:
    """Runs the app under uvicorn on a pre-bound socket."""

    def __init__(self, store: StateStore, host: str = "127.0.0.1", port: int = 8085,
                 port_retries: int = 10) -> None:
        self.app = create_app(store)
        self._host = host
        self._port = port
        self._port_retries = port_retries
        self._server = None
        self.bound_port: int | None = None

    async def serve(self) -> None:
        import uvicorn

        sock = bind_socket(self._host, self._port, self._port_retries)
        self.bound_port = sock.getsockname()[1]
        log.info("http: listening on http://%s:%d/state", self._host, self.bound_port)

        config = uvicorn.Config(self.app, log_level="warning")
        self._server = uvicorn.Server(config)
        try:
            await self._server.serve(sockets=[sock])
        finally:
            sock.close()

    def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
