"""Test environment: in-memory database and fixed API keys."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["API_KEY_USER1"] = "test-key-1"
os.environ["API_KEY_USER2"] = "test-key-2:bob"
