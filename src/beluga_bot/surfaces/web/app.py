from __future__ import annotations

import asyncio
import json
import logging
import random
import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ...commands.dispatcher import CommandDispatcher
from ...commands.services import CommandServices
from ...core.audit import AuditLogger
from ...core.config import BotConfig
from ...core.logging_utils import log_event
from ...core.rate_limit import RateLimiter
from ...core.request_context import SecurityContext, build_security_context
from ...core.result import Err, Ok, ValidationResult
from ...integrations.discord.interactions import parse_interaction
from ...integrations.discord.responses import error_response, pong_response
from ...integrations.discord.rest import DiscordRestClient
from .execution import BackgroundExecutionContext
from .health import build_health_payload
from .middleware import CORS_HEADERS, SecurityHeadersMiddleware
from .security import (
    RATE_LIMIT_EXCEEDED,
    REQUEST_TIMEOUT,
    REQUEST_TIMEOUT_SECONDS,
    verify_interaction_request,
)

logger = logging.getLogger(__name__)

DEFAULT_PRUNE_PROBABILITY = 0.01
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def decode_interaction_payload(body: bytes) -> Optional[dict]:
    """Return the JSON object in ``body``, or None when it is not one."""
    try:
        payload = json.loads(body)
    except (ValueError, RecursionError):
        return None
    return payload if isinstance(payload, dict) else None


def create_app(
    config: Optional[BotConfig] = None,
    *,
    services: Optional[CommandServices] = None,
    rate_limiter: Optional[RateLimiter] = None,
    prune_probability: float = DEFAULT_PRUNE_PROBABILITY,
    random_source: Callable[[], float] = random.random,
    clock: Callable[[], float] = time.time,
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
) -> FastAPI:
    if services is None:
        config = config or BotConfig.from_env()
        services = CommandServices(
            config=config,
            discord=DiscordRestClient(bot_token=config.discord_token or ""),
            audit=AuditLogger(),
        )
        owns_discord_client = True
    else:
        config = services.config
        owns_discord_client = False
    audit = services.audit
    limiter = rate_limiter if rate_limiter is not None else RateLimiter()
    dispatcher = CommandDispatcher(services)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        log_event(
            logger,
            logging.INFO,
            "web.startup",
            environment=config.environment,
            commands=list(dispatcher.command_names),
        )
        try:
            yield
        finally:
            if owns_discord_client:
                await services.discord.close()

    app = FastAPI(
        title="Beluga Discord Bot",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.state.config = config
    app.state.services = services
    app.state.rate_limiter = limiter
    app.state.dispatcher = dispatcher

    async def read_and_verify(
        request: Request, context: SecurityContext
    ) -> ValidationResult[bytes]:
        body = await request.body()
        return verify_interaction_request(
            body,
            request.headers,
            public_key=config.discord_public_key,
            context=context,
            rate_limiter=limiter,
            now=clock(),
        )

    async def receive_interaction(
        request: Request, context: SecurityContext
    ) -> ValidationResult[Optional[dict]]:
        verification = await read_and_verify(request, context)
        if isinstance(verification, Err):
            return verification
        return Ok(decode_interaction_payload(verification.data))

    @app.get("/")
    async def health(request: Request) -> Response:
        status_code, payload = build_health_payload(config)
        context = build_security_context(
            request.headers, peer_host=request.client.host if request.client else None
        )
        audit.health_check(context, healthy=status_code == 200)
        return JSONResponse(payload, status_code=status_code)

    @app.options("/")
    async def cors_preflight() -> Response:
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.post("/")
    async def interactions(request: Request) -> Response:
        context = build_security_context(
            request.headers, peer_host=request.client.host if request.client else None
        )
        audit.request_received(context, method=request.method, path=request.url.path)
        if random_source() < prune_probability:
            pruned = limiter.prune()
            log_event(logger, logging.DEBUG, "web.rate_limit.pruned", removed=pruned)

        try:
            try:
                verification = await asyncio.wait_for(
                    receive_interaction(request, context), timeout=request_timeout_seconds
                )
            except asyncio.TimeoutError:
                verification = Err(REQUEST_TIMEOUT)
            if isinstance(verification, Err):
                if verification.error == RATE_LIMIT_EXCEEDED:
                    audit.rate_limit_exceeded(context)
                audit.request_rejected(context, verification.error)
                return PlainTextResponse("Unauthorized", status_code=401)
            audit.request_verified(context)

            payload = verification.data
            if payload is None:
                log_event(
                    logger,
                    logging.WARNING,
                    "web.interaction.invalid_json",
                    request_id=context.request_id,
                )
                return JSONResponse(error_response("Invalid request format"))

            interaction = parse_interaction(payload)
            if interaction.is_ping:
                return JSONResponse(pong_response())
            if interaction.is_command:
                execution_context = BackgroundExecutionContext()
                body = dispatcher.dispatch(
                    interaction, execution_context, security_context=context
                )
                return JSONResponse(body, background=execution_context.tasks)

            log_event(
                logger,
                logging.WARNING,
                "web.interaction.unsupported_type",
                request_id=context.request_id,
                interaction_type=interaction.type,
            )
            return PlainTextResponse("Bad request", status_code=400)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "web.interaction.failed",
                request_id=context.request_id,
                exc=exc,
            )
            audit.error_occurred(context, str(exc))
            return PlainTextResponse("Internal server error", status_code=500)

    @app.api_route("/{path:path}", methods=ALL_METHODS)
    async def method_not_allowed() -> Response:
        return PlainTextResponse("Method not allowed", status_code=405)

    return app
