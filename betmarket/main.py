"""
FastAPI application for the betting market
Game market view, bet placement, health checks
"""

from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging

from betmarket.auth import verify_api_key, optional_api_key
from betmarket.core.errors import ErrorKind
from betmarket.models import get_db, init_db
from betmarket.schemas import (
    BetRejectedResponse,
    DraftResponse,
    GameResponse,
    MarketResponse,
    PlaceBetRequest,
    PlaceBetResponse,
    VolumeResponse,
    WagerResponse,
)
from betmarket.services.market_session import MarketView
from betmarket.services.sessions import SessionRegistry, get_session_registry

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

_REJECTION_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.BUSY: status.HTTP_409_CONFLICT,
    ErrorKind.STORE_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.SIGNED_OUT: status.HTTP_401_UNAUTHORIZED,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting betting market API")
    init_db()

    yield

    logger.info("Shutting down betting market API")
    get_session_registry().close_all()


app = FastAPI(
    title="Betting Market",
    description="Single-game betting market: bet intake and wagered volume",
    version="1.0",
    lifespan=lifespan,
)

# CORS (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:8501"],  # Streamlit
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _market_response(view: MarketView, signed_in: bool) -> MarketResponse:
    return MarketResponse(
        game=GameResponse.from_game(view.game),
        volume=VolumeResponse(
            total=view.volume.total,
            side_a=view.volume.side_a,
            side_b=view.volume.side_b,
        ),
        wagers=[WagerResponse.from_wager(w) for w in view.wagers],
        balance=view.balance if signed_in else None,
        error=view.error,
        submitting=view.submitting,
        draft=DraftResponse(amount=view.draft.amount, prediction=view.draft.prediction),
        brackets=list(view.brackets),
        currency_symbol=view.currency_symbol,
        theme=view.theme,
    )


def _game_not_found(game_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Game {game_id} not found")


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check"""
    return {
        "app": "Betting Market",
        "version": "1.0",
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint"""
    health = {"status": "healthy", "database": "connected"}

    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check database error: %s", e)
        health["status"] = "degraded"
        health["database"] = f"error: {str(e)}"

    return health


@app.get("/api/games/{game_id}/market", response_model=MarketResponse)
async def get_market(
    game_id: str,
    user: Optional[str] = Depends(optional_api_key),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Game, wagered volume and bet feed; balance too when signed in."""
    session = registry.viewer(user)
    await session.load(game_id)

    view = session.view()
    if view.game is None:
        raise _game_not_found(game_id)
    return _market_response(view, signed_in=user is not None)


# ============================================================================
# AUTHENTICATED ENDPOINTS - BETS
# ============================================================================

@app.post(
    "/api/games/{game_id}/bets",
    response_model=PlaceBetResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": BetRejectedResponse},
        status.HTTP_409_CONFLICT: {"model": BetRejectedResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": BetRejectedResponse},
    },
)
async def place_bet(
    game_id: str,
    payload: PlaceBetRequest,
    user: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Validate and place a bet, then return the refreshed market."""
    if not registry.begin_placement(user, game_id):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "A bet is already being placed", "reason": ErrorKind.BUSY.value},
        )

    try:
        session = registry.get(user, game_id)
        await session.load(game_id)
        if session.game is None:
            raise _game_not_found(game_id)

        session.set_amount(payload.amount)
        session.set_prediction(payload.prediction)
        result = await session.submit()
    finally:
        registry.end_placement(user, game_id)

    if not result.accepted:
        return JSONResponse(
            status_code=_REJECTION_STATUS.get(result.reason, status.HTTP_400_BAD_REQUEST),
            content={"detail": result.message, "reason": result.reason.value},
        )

    logger.info("Bet %s placed by %s on game %s", result.bet_id, user, game_id)

    return PlaceBetResponse(
        message="Bet placed successfully",
        bet_id=result.bet_id,
        market=_market_response(session.view(), signed_in=True),
    )


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
