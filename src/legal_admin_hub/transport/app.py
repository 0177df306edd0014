"""HTTP surface: Starlette app serving the assistant endpoint."""

from __future__ import annotations

from typing import AsyncIterator

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse
from starlette.routing import Route

from legal_admin_hub.core.config import AppConfig
from legal_admin_hub.core.errors import MalformedRequestError
from legal_admin_hub.core.types import Message
from legal_admin_hub.llm import CompletionService
from legal_admin_hub.observability import get_logger
from legal_admin_hub.orchestrator import DispatchLoop, build_dispatch_loop

from .data_stream import MEDIA_TYPE, STREAM_HEADERS, encode_event
from .request import decode_request


def create_app(
    cfg: AppConfig,
    *,
    completion: CompletionService | None = None,
    dispatch: DispatchLoop | None = None,
) -> Starlette:
    """Build the ASGI app. The dispatch loop is shared; each request gets its own run."""

    loop = dispatch or build_dispatch_loop(cfg, completion=completion)
    max_body = cfg.server.max_body_bytes
    log = get_logger("legal_admin_hub.http")

    async def assistant(request: Request) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > max_body:
            return JSONResponse({"error": "request body too large"}, status_code=413)

        # Chunked uploads carry no length; stop reading once over the cap.
        body = bytearray()
        async for chunk in request.stream():
            body.extend(chunk)
            if len(body) > max_body:
                log.info("request_rejected", status=413, received_bytes=len(body))
                return JSONResponse({"error": "request body too large"}, status_code=413)

        try:
            history = decode_request(bytes(body))
        except MalformedRequestError as e:
            log.info("request_rejected", status=e.status_code, error=e.message)
            return JSONResponse({"error": e.message, "details": e.details}, status_code=e.status_code)

        return StreamingResponse(
            _frames(loop, history, request),
            media_type=MEDIA_TYPE,
            headers=STREAM_HEADERS,
        )

    async def list_tools(request: Request) -> Response:
        return JSONResponse(
            {
                "tools": [
                    {"name": d.name, "description": d.description, "parameters": d.parameters()}
                    for d in loop.registry.list_definitions()
                ]
            }
        )

    async def healthz(request: Request) -> Response:
        return JSONResponse({"status": "ok"})

    routes = [
        Route("/api/assistant", assistant, methods=["POST"]),
        Route("/api/tools", list_tools, methods=["GET"]),
        Route("/healthz", healthz, methods=["GET"]),
    ]
    return Starlette(routes=routes)


async def _frames(loop: DispatchLoop, history: list[Message], request: Request) -> AsyncIterator[str]:
    async for event in loop.run(history, is_disconnected=request.is_disconnected):
        for line in encode_event(event):
            yield line
