"""Betting market backend: wager intake and volume aggregation for a single game."""
