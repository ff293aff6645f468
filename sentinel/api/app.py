"""
HTTP and WebSocket interface.

Run with:
    uvicorn --factory sentinel.api.app:create_app --port 3001
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from sentinel import __version__
from sentinel.config import SentinelConfig, get_config
from sentinel.coordinator import SubmissionCoordinator, Subscription
from sentinel.core.logging import setup_logging
from sentinel.models.submission import SubmissionRequest, SubmissionValidationError
from sentinel.registry import TokenListClient, list_partners

logger = logging.getLogger(__name__)

AGENT_NAME = f"Research Sentinel v{__version__}"
RATE_LIMIT_MESSAGE = "Too many evaluation requests from this address, please try again later."


def _rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {exc.detail}")
    return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE})


def create_app(
    config: Optional[SentinelConfig] = None,
    coordinator: Optional[SubmissionCoordinator] = None,
    token_lists: Optional[TokenListClient] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Service configuration (defaults to ``get_config()``)
        coordinator: Pipeline coordinator; built from config when omitted
            and then closed on shutdown
        token_lists: Partner token list client; built from config when
            omitted and then closed on shutdown

    Returns:
        Configured FastAPI app
    """
    config = config or get_config()
    setup_logging(config.log_level)

    owns_coordinator = coordinator is None
    coordinator = coordinator or SubmissionCoordinator.from_config(config)
    owns_token_lists = token_lists is None
    token_lists = token_lists or TokenListClient.from_config(config, ledger=coordinator.orchestrator.ledger)
    started_at = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{AGENT_NAME} live (rate limit {config.rate_limit})")
        yield
        if owns_coordinator:
            await coordinator.aclose()
        if owns_token_lists:
            await token_lists.aclose()

    app = FastAPI(
        title="Research Sentinel",
        description="Research submission evaluation and grant payouts",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.coordinator = coordinator
    app.state.token_lists = token_lists

    limiter = Limiter(key_func=get_remote_address, strategy="fixed-window")
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # ========================================================================
    # INGRESS
    # ========================================================================

    @app.post("/api/evaluate", status_code=202)
    @limiter.limit(config.rate_limit)
    async def evaluate(request: Request):
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(status_code=400, content={"error": "Request body must be valid JSON"})

        try:
            submission = SubmissionRequest.parse(body)
        except SubmissionValidationError as e:
            return JSONResponse(status_code=400, content={"error": str(e)})

        record = await coordinator.submit(submission, client_id=get_remote_address(request))
        return JSONResponse(status_code=202, content=record.to_event())

    # ========================================================================
    # DASHBOARD
    # ========================================================================

    @app.get("/api/agent/logs")
    async def agent_logs():
        return [record.to_event() for record in coordinator.store.list()]

    @app.get("/api/agent/stats")
    async def agent_stats():
        return coordinator.store.stats()

    @app.get("/api/agent/wallet")
    async def agent_wallet():
        try:
            return await coordinator.orchestrator.wallet_info()
        except Exception as e:
            logger.warning(f"Wallet query failed: {e}")
            return {"publicKey": "N/A", "solBalance": 0, "bioBalance": "0", "error": str(e)}

    @app.get("/api/bio/daos")
    async def partner_registry():
        daos = [partner.to_dict() for partner in list_partners()]
        return {"daos": daos, "count": len(daos)}

    @app.get("/api/biodao/tokens")
    async def partner_tokens(onchain: str = ""):
        try:
            if onchain.lower() in ("true", "1", "yes"):
                tokens, updated_at = await token_lists.get_tokens_with_onchain()
            else:
                tokens, updated_at = await token_lists.get_tokens()
        except Exception as e:
            logger.error(f"Partner token lookup failed: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": str(e) or "Failed to fetch BioDAO tokens"},
            )
        return {"tokens": [token.to_dict() for token in tokens], "updatedAt": updated_at}

    @app.get("/api/bio-token")
    async def bio_token():
        try:
            return await coordinator.orchestrator.token_info()
        except Exception as e:
            logger.warning(f"Token query failed: {e}")
            return {"error": str(e)}

    @app.get("/api/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "agent": AGENT_NAME,
            "version": __version__,
            "supportedBioDAOs": len(list_partners()),
            "uptime": round(time.monotonic() - started_at, 3),
            "pendingEvaluations": coordinator.pending_count,
            "integrations": {
                "pinata": "configured" if config.pinata_jwt else "public-gateways",
                "tavilySearch": "configured" if config.tavily_api_key else "fallback",
                "solana": "devnet" if config.is_devnet else "mainnet",
                "database": "configured" if config.database_url else "memory",
            },
        }

    # ========================================================================
    # LIVE EVENTS
    # ========================================================================

    @app.websocket("/ws")
    async def events(websocket: WebSocket):
        await websocket.accept()
        subscription = coordinator.broadcaster.subscribe()
        logger.info("Observer connected")

        try:
            await websocket.send_json({
                "event": "initial_state",
                "logs": [record.to_event() for record in coordinator.store.list()],
                "stats": coordinator.store.stats(),
            })
            await stream_events(websocket, subscription)
        except WebSocketDisconnect:
            logger.info("Observer disconnected")
        finally:
            subscription.unsubscribe()

    return app


async def stream_events(websocket: WebSocket, subscription: Subscription):
    """
    Forward subscription events to a socket until the client goes away.

    Incoming frames are read and ignored; a disconnect ends the stream. The
    forwarding task is always collected, and a failed send is logged.
    """
    async def forward():
        async for event in subscription:
            await websocket.send_json(event)

    forwarder = asyncio.create_task(forward())
    try:
        while True:
            await websocket.receive_text()
    finally:
        forwarder.cancel()
        (outcome,) = await asyncio.gather(forwarder, return_exceptions=True)
        if isinstance(outcome, Exception):
            logger.warning(f"Event forwarding stopped: {outcome}")


def main():
    """Console entry point."""
    import uvicorn

    uvicorn.run("sentinel.api.app:create_app", factory=True, host="0.0.0.0", port=3001)
