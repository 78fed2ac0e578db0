"""
SQLAlchemy-backed store gateway.

The ORM session is synchronous, so each gateway call runs in a worker
thread with its own short-lived session.  Inserting a bet and debiting the
bettor's balance happen in one transaction; the insert is refused when the
balance would go negative.

Database errors never leak past this module: they are logged and re-raised
as ``StoreFailure``.
"""

import asyncio
import logging
from decimal import Decimal
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, sessionmaker

from betmarket.core.domain import Game, PlacementRequest
from betmarket.core.errors import GameNotFound, StoreFailure
from betmarket.core.feed import WagerRow
from betmarket.core.gateway import StoreGateway
from betmarket.models import Game as GameRow
from betmarket.models import ScorePredictionBet, SessionLocal, User, WinGameBet

logger = logging.getLogger(__name__)


def game_from_row(row: GameRow) -> Game:
    return Game(
        id=row.id,
        type=row.type,
        status=row.status,
        date=row.date,
        team_a=row.teama,
        team_b=row.teamb,
        team=row.team,
        team_a_logo_url=row.teama_logo_url,
        team_b_logo_url=row.teamb_logo_url,
        team_logo_url=row.team_logo_url,
    )


def _wager_row(bet) -> WagerRow:
    return WagerRow(
        id=str(bet.id),
        user_id=bet.user_id,
        amount=Decimal(bet.bet_amount) if bet.bet_amount is not None else None,
        status=bet.status,
        created_at=bet.created_at,
        team=bet.team,
        predicted_percentage=getattr(bet, "predicted_percentage", None),
        predicted_score=getattr(bet, "predicted_score", None),
        bettor_name=bet.user.name if bet.user is not None else "",
    )


class SqlStoreGateway(StoreGateway):
    """Store gateway over the ``games``/``users``/bet tables."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory

    async def _run(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as exc:
            logger.error("Store error in %s: %s", fn.__name__, exc, exc_info=True)
            raise StoreFailure(str(exc)) from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_game(self, game_id: str) -> Game:
        return await self._run(self._get_game, game_id)

    async def get_user_balance(self, user_id: str) -> Decimal:
        return await self._run(self._get_user_balance, user_id)

    async def list_win_wagers(self, game_id: str) -> List[WagerRow]:
        return await self._run(self._list_bets, WinGameBet, game_id)

    async def list_score_wagers(self, game_id: str) -> List[WagerRow]:
        return await self._run(self._list_bets, ScorePredictionBet, game_id)

    def _get_game(self, game_id: str) -> Game:
        with self._session_factory() as db:
            row = db.query(GameRow).filter(GameRow.id == game_id).first()
            if row is None:
                raise GameNotFound(game_id)
            return game_from_row(row)

    def _get_user_balance(self, user_id: str) -> Decimal:
        with self._session_factory() as db:
            balance = db.query(User.balance).filter(User.id == user_id).scalar()
            if balance is None:
                raise StoreFailure(f"User {user_id!r} not found")
            return Decimal(balance)

    def _list_bets(self, model, game_id: str) -> List[WagerRow]:
        with self._session_factory() as db:
            bets = (
                db.query(model)
                .options(joinedload(model.user))
                .filter(model.game_id == game_id)
                .order_by(model.created_at.desc())
                .all()
            )
            return [_wager_row(b) for b in bets]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_win_wager(self, request: PlacementRequest) -> str:
        return await self._run(self._insert_bet, WinGameBet, request)

    async def insert_score_wager(self, request: PlacementRequest) -> str:
        return await self._run(self._insert_bet, ScorePredictionBet, request)

    def _insert_bet(self, model, request: PlacementRequest) -> str:
        with self._session_factory() as db:
            with db.begin():
                user = db.get(User, request.user_id, with_for_update=True)
                if user is None:
                    raise StoreFailure(f"User {request.user_id!r} not found")
                if Decimal(user.balance) < request.amount:
                    raise StoreFailure(
                        f"Balance {user.balance} below stake {request.amount} for {user.id}"
                    )

                if model is WinGameBet:
                    bet = WinGameBet(
                        user_id=user.id,
                        game_id=request.game_id,
                        team=request.team,
                        predicted_percentage=request.predicted_percentage,
                        bet_amount=request.amount,
                    )
                else:
                    bet = ScorePredictionBet(
                        user_id=user.id,
                        game_id=request.game_id,
                        team=request.team,
                        predicted_score=request.bracket,
                        bet_amount=request.amount,
                    )

                user.balance = Decimal(user.balance) - request.amount
                db.add(bet)
                db.flush()
                bet_id = str(bet.id)

            logger.info("Stored %s #%s: %s by %s", model.__tablename__, bet_id, request.amount, request.user_id)
            return bet_id
