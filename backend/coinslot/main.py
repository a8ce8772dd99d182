"""coinslot FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response

from coinslot.config import settings
from coinslot.errors import GameError
from coinslot.identity import build_identity_provider
from coinslot.logic.engine import SlotMachine, build_machine_config
from coinslot.middleware import BearerTokenMiddleware, ErrorHandlerMiddleware
from coinslot.profile_store import profile_store
from coinslot.protocol import (
    CreateProfileRequest,
    PaytableResponse,
    PaytableRow,
    ProfileResponse,
    SpinResponse,
    SymbolInfo,
)
from coinslot.spin_service import SpinCoordinator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage Redis and identity provider lifecycles."""
    logging.basicConfig(level=settings.log_level)
    await profile_store.connect()
    await coordinator.identity.open()
    logger.info(
        "coinslot ready: spin cost %d, config %s",
        coordinator.spin_cost,
        coordinator.config_hash,
    )
    yield
    await coordinator.identity.close()
    await profile_store.close()


app = FastAPI(
    title="coinslot",
    version="0.1.0",
    description="Server-authoritative coin slot machine",
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(BearerTokenMiddleware)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError) -> Response:
    return exc.to_response()


# Process-wide machine and coordinator
machine = SlotMachine(build_machine_config())
coordinator = SpinCoordinator(
    identity=build_identity_provider(),
    store=profile_store,
    machine=machine,
)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/paytable")
async def paytable() -> dict:
    """Symbols, weights and paytable rows in the order they are matched."""
    config = machine.config
    response = PaytableResponse(
        spinCost=config.spin_cost,
        configHash=coordinator.config_hash,
        symbols=[SymbolInfo(symbol=w.symbol, weight=w.weight) for w in config.weights],
        paytable=[
            PaytableRow(combo=list(entry.combo), payout=entry.payout)
            for entry in config.paytable
        ],
    )
    return response.model_dump()


@app.post("/spin")
async def spin(request: Request) -> dict:
    """
    POST /spin.

    Authenticates the bearer token, charges the spin cost, draws and
    resolves three reels and settles the balance atomically. The body is
    the settled state; clients display `coins` as returned.
    """
    outcome = await coordinator.spin(request.state.token)
    return SpinResponse(**outcome.model_dump()).model_dump()


@app.get("/profile")
async def get_profile(request: Request) -> dict:
    """Current profile of the authenticated player."""
    profile = await coordinator.read_profile(request.state.token)
    return ProfileResponse(**profile.model_dump()).model_dump()


@app.post("/profile", status_code=201)
async def create_profile(request: Request, body: CreateProfileRequest) -> dict:
    """Provision the authenticated player's profile with the starting balance."""
    profile = await coordinator.provision_profile(request.state.token, body.username)
    return ProfileResponse(**profile.model_dump()).model_dump()
