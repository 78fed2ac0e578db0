#!/usr/bin/env python3
"""
Database initialization script
Creates all tables and optionally seeds demo games and bettors
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Load .env file
from dotenv import load_dotenv
load_dotenv()

from betmarket.models import Base, engine, SessionLocal
from betmarket.models import Game, User
from datetime import datetime, timedelta
from decimal import Decimal
import logging
from sqlalchemy import text, inspect
from sqlalchemy.exc import SQLAlchemyError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init_database(drop_existing: bool = False):
    """
    Initialize database tables

    Args:
        drop_existing: If True, drops all tables first (DANGER: data loss!)
    """
    logger.info("🔧 Initializing betting market database...")

    if drop_existing:
        logger.warning("⚠️  Dropping all existing tables!")
        response = input("Are you sure? This will delete all data. Type 'yes' to confirm: ")
        if response.lower() != 'yes':
            logger.info("Aborted.")
            return

        Base.metadata.drop_all(bind=engine)
        logger.info("✅ Existing tables dropped")

    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables created successfully")

    inspector = inspect(engine)
    tables = inspector.get_table_names()
    logger.info("📋 Tables: %s", ", ".join(tables))

    return True


def seed_test_data():
    """Add one live game per market type and two funded bettors"""
    logger.info("🌱 Seeding test data...")

    db = SessionLocal()
    kickoff = datetime.utcnow() + timedelta(hours=2)

    try:
        db.add_all([
            Game(id="G1", type="win", status="live", date=kickoff,
                 teama="Lions", teamb="Tigers"),
            Game(id="G2", type="score", status="live", date=kickoff,
                 team="Lions"),
            User(id="user1", name="Asha", balance=Decimal("1000.00")),
            User(id="user2", name="Ravi", balance=Decimal("500.00")),
        ])
        db.commit()

        logger.info("✅ Test data seeded")

    except SQLAlchemyError as e:
        logger.error("❌ Error seeding data: %s", e)
        db.rollback()

    finally:
        db.close()


def check_connection():
    """Test database connection"""
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        logger.info("✅ Database connection successful")
        return True
    except SQLAlchemyError as e:
        logger.error("❌ Database connection failed: %s", e)
        return False


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Initialize betting market database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables (DANGER!)")
    parser.add_argument("--seed", action="store_true", help="Seed demo games and bettors")
    parser.add_argument("--check", action="store_true", help="Only check connection")

    args = parser.parse_args()

    if args.check:
        check_connection()
    else:
        if check_connection():
            init_database(drop_existing=args.drop)

            if args.seed:
                seed_test_data()

            logger.info("🎉 Database initialization complete!")
        else:
            logger.error("Cannot initialize database - connection failed")
            sys.exit(1)
