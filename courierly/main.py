#!/usr/bin/env python3
"""
Courierly - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Establishes the messaging session and serves the dispatch API

All business logic is in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from courierly import __version__
from courierly.config.provider import ConfigProvider, EnvConfigProvider
from courierly.modules.api import (
    SENT_STATUS,
    ErrorResponse,
    SendAudioRequest,
    SendContactRequest,
    SendDocumentRequest,
    SendImageRequest,
    SendLocationRequest,
    SendPollRequest,
    SendReactionRequest,
    SendResponse,
    SendTextRequest,
    SendVideoRequest,
    StatusResponse,
)
from courierly.modules.auth import AuthenticationService, build_auth_service

# Import modules through their black box interfaces
from courierly.modules.config import get_config
from courierly.modules.session import (
    ConnectionStatus,
    ReconnectPolicy,
    SendErrorKind,
    SendRequest,
    SessionManager,
)
from courierly.modules.storage import build_auth_store
from courierly.modules.transport import GatewayTransport

# Get configuration
config = get_config()

# Configure logging with polling suppression
from courierly.logging_config import get_logging_config
import logging.config as log_config

log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger(__name__)

# Configuration provider (centralized config access)
config_provider: ConfigProvider = EnvConfigProvider()

# Module instances (initialized at startup)
auth_service: Optional[AuthenticationService] = None
session_manager: Optional[SessionManager] = None
transport: Optional[GatewayTransport] = None
redis_client: Optional[redis.Redis] = None


async def get_redis_client() -> redis.Redis:
    """Create Redis client from configuration."""
    redis_url = f"redis://{config.get('redis_host')}:{config.get('redis_port')}/{config.get('redis_db')}"

    return await redis.from_url(
        redis_url,
        password=config.get("redis_password"),  # Passed separately to avoid URL encoding issues
        encoding="utf-8",
        decode_responses=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    global auth_service, session_manager, transport, redis_client

    # Startup
    logger.info("Starting Courierly API...")

    # Redis is only needed when it holds the auth state
    if config.get("auth_store_backend") == "redis":
        redis_client = await get_redis_client()

    auth_store = build_auth_store(config, redis_client)
    logger.info(f"Auth state stored at {auth_store.location}")

    auth_service = build_auth_service(config_provider.get_auth_config())

    transport = GatewayTransport(
        config.get("gateway_url"),
        config.get("session_name"),
        timeout=config.get("gateway_timeout"),
    )
    reconnect = config_provider.get_reconnect_config()
    session_manager = SessionManager(
        transport,
        auth_store,
        default_recipient=config.get("default_recipient"),
        reconnect_policy=ReconnectPolicy(
            base_delay=reconnect.base_delay, max_delay=reconnect.max_delay
        ),
    )
    await session_manager.establish()

    logger.info(f"Courierly API started for session '{config.get('session_name')}'")

    yield

    # Shutdown
    logger.info("Shutting down Courierly API...")

    if session_manager:
        await session_manager.shutdown()
    if transport:
        await transport.aclose()
    if redis_client:
        await redis_client.close()
    logger.info("Courierly API shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Courierly API",
    description="Courierly - Send messages through a single persistent messaging session",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config_provider.get_api_config().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependency injection helpers
async def verify_api_key(
    x_api_key: Optional[str] = Header(None, description="API key for authentication")
) -> Optional[str]:
    """Verify API key and return service identity."""
    if not auth_service:
        raise HTTPException(503, "Service not initialized")

    result = await auth_service.authenticate(api_key=x_api_key)
    if not result.ok:
        raise HTTPException(401, "Invalid API key")

    return result.identity


def get_session_manager() -> SessionManager:
    if not session_manager:
        raise HTTPException(503, "Service not initialized")
    return session_manager


async def _dispatch(request: SendRequest, identity: Optional[str]):
    """Hand a send request to the session and translate the result."""
    manager = get_session_manager()
    result = await manager.send(request)

    if result.ok:
        logger.info(
            f"{request.kind.value} message sent to {result.recipient} "
            f"(caller: {identity or 'anonymous'})"
        )
        return SendResponse(status=SENT_STATUS[request.kind], target=result.recipient)

    status_code = 503 if result.error is SendErrorKind.NOT_CONNECTED else 500
    return JSONResponse(status_code=status_code, content={"error": result.message})


SEND_RESPONSES = {
    500: {"model": ErrorResponse, "description": "The session rejected the message"},
    503: {"model": ErrorResponse, "description": "The session is not connected"},
}


# Session Endpoints


@app.get("/status", response_model=StatusResponse)
async def get_status(identity: Optional[str] = Depends(verify_api_key)):
    """
    Report the messaging session status.

    Never blocks on the session; reads the manager's current snapshot.
    """
    manager = get_session_manager()
    return StatusResponse.from_snapshot(manager.snapshot())


@app.post("/sendText", response_model=SendResponse, responses=SEND_RESPONSES)
async def send_text(payload: SendTextRequest, identity: Optional[str] = Depends(verify_api_key)):
    return await _dispatch(payload, identity)


@app.post("/sendImage", response_model=SendResponse, responses=SEND_RESPONSES)
async def send_image(payload: SendImageRequest, identity: Optional[str] = Depends(verify_api_key)):
    return await _dispatch(payload, identity)


@app.post("/sendVideo", response_model=SendResponse, responses=SEND_RESPONSES)
async def send_video(payload: SendVideoRequest, identity: Optional[str] = Depends(verify_api_key)):
    return await _dispatch(payload, identity)


@app.post("/sendAudio", response_model=SendResponse, responses=SEND_RESPONSES)
async def send_audio(payload: SendAudioRequest, identity: Optional[str] = Depends(verify_api_key)):
    return await _dispatch(payload, identity)


@app.post("/sendDocument", response_model=SendResponse, responses=SEND_RESPONSES)
async def send_document(
    payload: SendDocumentRequest, identity: Optional[str] = Depends(verify_api_key)
):
    return await _dispatch(payload, identity)


@app.post("/sendLocation", response_model=SendResponse, responses=SEND_RESPONSES)
async def send_location(
    payload: SendLocationRequest, identity: Optional[str] = Depends(verify_api_key)
):
    return await _dispatch(payload, identity)


@app.post("/sendContact", response_model=SendResponse, responses=SEND_RESPONSES)
async def send_contact(
    payload: SendContactRequest, identity: Optional[str] = Depends(verify_api_key)
):
    return await _dispatch(payload, identity)


@app.post("/sendReaction", response_model=SendResponse, responses=SEND_RESPONSES)
async def send_reaction(
    payload: SendReactionRequest, identity: Optional[str] = Depends(verify_api_key)
):
    return await _dispatch(payload, identity)


@app.post("/sendPoll", response_model=SendResponse, responses=SEND_RESPONSES)
async def send_poll(payload: SendPollRequest, identity: Optional[str] = Depends(verify_api_key)):
    return await _dispatch(payload, identity)


# Health/Monitoring Endpoints


@app.get("/healthz")
async def healthz():
    """
    Minimal health check endpoint for liveness probes.

    This endpoint is unauthenticated and returns a simple OK response.

    Returns:
        200: Service is running
    """
    return {"status": "ok"}


@app.get("/health")
async def health_check():
    """
    Readiness check.

    The service is unhealthy when the session has settled at disconnected
    (logged out or crashed) or its Redis auth store is unreachable.

    Returns:
        200: Service healthy
        503: Service unhealthy
    """
    try:
        redis_status = "not used"
        if redis_client:
            await redis_client.ping()
            redis_status = "connected"

        if not session_manager:
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "modules": "not initialized", "redis": redis_status},
            )

        session_status = session_manager.status()
        body = {
            "status": "healthy",
            "session": session_status.value,
            "redis": redis_status,
            "modules": "initialized",
            "version": __version__,
        }
        if session_status is ConnectionStatus.DISCONNECTED:
            body["status"] = "unhealthy"
            return JSONResponse(status_code=503, content=body)
        return body
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(e)})


@app.get("/metrics")
async def metrics():
    """
    Prometheus-compatible metrics endpoint.

    Returns session metrics in the text exposition format.
    """
    if not session_manager:
        return Response(content="", status_code=503)

    snapshot = session_manager.snapshot()

    status_lines = "\n".join(
        f'courierly_connection_status{{status="{status.value}"}} '
        f"{1 if snapshot.status is status else 0}"
        for status in ConnectionStatus
    )

    # Format as Prometheus metrics
    metrics_text = f"""# HELP courierly_connection_status Current status of the messaging session
# TYPE courierly_connection_status gauge
{status_lines}
# HELP courierly_reconnects_total Reconnect attempts since startup
# TYPE courierly_reconnects_total counter
courierly_reconnects_total {snapshot.reconnects}
# HELP courierly_messages_sent_total Messages handed to the session
# TYPE courierly_messages_sent_total counter
courierly_messages_sent_total {snapshot.messages_sent}
# HELP courierly_messages_failed_total Send requests that failed
# TYPE courierly_messages_failed_total counter
courierly_messages_failed_total {snapshot.messages_failed}
"""

    return Response(content=metrics_text, media_type="text/plain")


# Error handlers


@app.exception_handler(redis.ConnectionError)
async def redis_error_handler(request, exc):
    """Handle Redis connection errors."""
    logger.error(f"Redis connection error: {exc}")
    return JSONResponse(status_code=503, content={"error": "Database connection failed"})


@app.exception_handler(ValueError)
async def validation_error_handler(request, exc):
    """Handle validation errors."""
    logger.error(f"Validation error: {exc}")
    return JSONResponse(status_code=400, content={"error": str(exc)})


if __name__ == "__main__":
    # Use dict config for logging, not file path
    uvicorn.run(
        "courierly.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )
