"""Shared utilities for the dashboard."""

import os
import requests
import streamlit as st
from dotenv import load_dotenv

load_dotenv()

_API_URL = os.getenv("API_URL", "http://localhost:8000")
_API_KEY = os.getenv("API_KEY_USER1", "").partition(":")[0]


def _key() -> str:
    return st.session_state.get("api_key", _API_KEY)


def _headers() -> dict:
    key = _key()
    return {"X-API-Key": key} if key else {}


def api_get(endpoint: str, params: dict = None):
    try:
        r = requests.get(f"{_API_URL}{endpoint}", headers=_headers(), params=params, timeout=15)
        if r.status_code == 404:
            return None
        r.raise_for_status()
        return r.json()
    except Exception as exc:
        st.error(f"API error: {exc}")
        return None


def api_post(endpoint: str, payload: dict):
    """
    POST and return ``(ok, body)``.

    Rejections (4xx/5xx) come back as ``(False, body)`` so the page can show
    the market's own message instead of a generic HTTP error.
    """
    try:
        r = requests.post(
            f"{_API_URL}{endpoint}",
            headers={**_headers(), "Content-Type": "application/json"},
            json=payload,
            timeout=15,
        )
    except Exception as exc:
        st.error(f"Request failed: {exc}")
        return False, {"detail": "Failed to place bet."}

    try:
        body = r.json()
    except ValueError:
        body = {"detail": r.text}
    return r.ok, body


def sidebar_api_key() -> None:
    """Show API key input in sidebar if the key is not yet set."""
    if not _key():
        with st.sidebar:
            key_input = st.text_input("API Key", type="password", key="api_key_sidebar")
            if key_input:
                st.session_state["api_key"] = key_input
                st.rerun()


STATUS_BADGES = {
    "completed": "🟢",
    "pending":   "🟡",
    "rejected":  "🔴",
}

THEME_COLORS = {
    "dark":  {"total": "#F5B729", "side_a": "#1A8754", "side_b": "#E74C3C"},
    "light": {"total": "#B7860B", "side_a": "#1A8754", "side_b": "#C0392B"},
}
