"""Core rules for a single-game betting market.

This package contains the pure, storage-agnostic building blocks:

- ``brackets``:  the fixed score-bracket table
- ``domain``:    Game, Wager (tagged prediction payload) and draft types
- ``volume``:    total and per-side wagered volume
- ``feed``:      merging win and score wagers into one ordered feed
- ``validator``: business rules a wager must pass before submission
- ``errors``:    error kinds, user-facing messages and store exceptions
- ``gateway``:   async store contract and an in-memory implementation

Nothing in this package imports from ``betmarket.services`` or ``betmarket.models``.
"""
