"""
Database models for the betting market
SQLAlchemy ORM; SQLite by default, PostgreSQL via DATABASE_URL
"""

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from datetime import datetime

from betmarket.config import MarketSettings
from betmarket.core.domain import MONEY_PLACES


def make_engine(database_url: str):
    """Engine for ``database_url``; SQLite connections may cross threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, echo=False, connect_args=connect_args)


DATABASE_URL = MarketSettings.from_env().database_url

engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class Game(Base):
    """A game with its market type ("win" or "score")"""

    __tablename__ = "games"

    id = Column(String, primary_key=True, index=True)
    type = Column(String, nullable=False)  # "win" | "score"
    status = Column(String, nullable=False, default="upcoming", index=True)  # "live" accepts bets
    date = Column(DateTime, nullable=False, index=True)

    # Win markets
    teama = Column(String)
    teamb = Column(String)
    teama_logo_url = Column(String)
    teamb_logo_url = Column(String)

    # Score markets
    team = Column(String)
    team_logo_url = Column(String)

    win_bets = relationship("WinGameBet", back_populates="game")
    score_bets = relationship("ScorePredictionBet", back_populates="game")

    created_at = Column(DateTime, default=datetime.utcnow)


class User(Base):
    """Bettor with a spendable balance"""

    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    balance = Column(Numeric(12, MONEY_PLACES), nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (CheckConstraint("balance >= 0", name="ck_users_balance_non_negative"),)


class WinGameBet(Base):
    """Bet on the winner of a win-type game"""

    __tablename__ = "win_game_bets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    game_id = Column(String, ForeignKey("games.id"), nullable=False, index=True)

    team = Column(String, nullable=False)
    predicted_percentage = Column(Integer)
    bet_amount = Column(Numeric(12, MONEY_PLACES), nullable=False)
    status = Column(String, nullable=False, default="pending")  # pending | completed | rejected
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User")
    game = relationship("Game", back_populates="win_bets")


class ScorePredictionBet(Base):
    """Bet on the combined-score bracket of a score-type game"""

    __tablename__ = "score_prediction_bets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    game_id = Column(String, ForeignKey("games.id"), nullable=False, index=True)

    team = Column(String)
    predicted_score = Column(Integer, nullable=False)  # 1-based bracket index
    bet_amount = Column(Numeric(12, MONEY_PLACES), nullable=False)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User")
    game = relationship("Game", back_populates="score_bets")


# Create all tables
def init_db(bind=None):
    """Initialize database tables"""
    Base.metadata.create_all(bind=bind or engine)
