"""Tests for the market API endpoints (in-memory store)."""

import asyncio
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from betmarket.config import MarketSettings
from betmarket.core.domain import Game
from betmarket.core.gateway import InMemoryStoreGateway
from betmarket.main import app
from betmarket.services.sessions import SessionRegistry, get_session_registry

USER1 = {"X-API-Key": "test-key-1"}
BOB = {"X-API-Key": "test-key-2"}


@pytest.fixture
def store():
    gw = InMemoryStoreGateway()
    gw.add_game(Game(id="G1", type="win", status="live", team_a="Lions", team_b="Tigers"))
    gw.add_game(Game(id="G2", type="score", status="live", team="Lions"))
    gw.add_game(Game(id="G3", type="win", status="completed", team_a="Lions", team_b="Tigers"))
    gw.add_user("user1", 100, name="Asha")
    gw.add_user("bob", 50, name="Bob")
    return gw


@pytest.fixture
def registry(store):
    return SessionRegistry(store, MarketSettings())


@pytest.fixture
def client(registry):
    app.dependency_overrides[get_session_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Market view
# ---------------------------------------------------------------------------

def test_root(client):
    assert client.get("/").json()["status"] == "operational"


def test_market_anonymous(client):
    r = client.get("/api/games/G1/market")
    assert r.status_code == 200
    body = r.json()
    assert body["game"]["team_a"] == "Lions"
    assert body["balance"] is None
    assert body["wagers"] == []
    assert len(body["brackets"]) == 11


def test_market_signed_in_shows_balance(client):
    body = client.get("/api/games/G1/market", headers=BOB).json()
    assert Decimal(body["balance"]) == Decimal("50")


def test_market_read_leaves_placement_sessions_alone(client, registry):
    placing = registry.get("user1", "G1")
    assert client.get("/api/games/G1/market", headers=USER1).status_code == 200
    assert len(registry) == 1
    assert placing.game_id is None


def test_market_unknown_game(client):
    assert client.get("/api/games/nope/market").status_code == 404


# ---------------------------------------------------------------------------
# Bet placement
# ---------------------------------------------------------------------------

def test_place_bet(client, store):
    r = client.post("/api/games/G1/bets", json={"amount": "30", "prediction": "Lions"}, headers=USER1)
    assert r.status_code == 201
    body = r.json()
    market = body["market"]
    assert Decimal(market["balance"]) == Decimal("70")
    assert Decimal(market["volume"]["side_a"]) == Decimal("30")
    assert market["wagers"][0]["bettor_name"] == "Asha"
    assert market["draft"] == {"amount": "", "prediction": ""}
    assert len(store.inserts) == 1


def test_place_score_bet_with_numeric_bracket(client):
    r = client.post("/api/games/G2/bets", json={"amount": 10, "prediction": 4}, headers=USER1)
    assert r.status_code == 201
    wager = r.json()["market"]["wagers"][0]
    assert wager["type"] == "score"
    assert wager["predicted_range"] == "101 - 120"


def test_place_bet_requires_key(client):
    r = client.post("/api/games/G1/bets", json={"amount": "30", "prediction": "Lions"})
    assert r.status_code == 401


def test_place_bet_insufficient_balance(client, store):
    r = client.post("/api/games/G1/bets", json={"amount": "150", "prediction": "Lions"}, headers=USER1)
    assert r.status_code == 400
    assert r.json() == {"detail": "Insufficient balance", "reason": "insufficient_balance"}
    assert store.inserts == []


def test_place_bet_closed_market(client):
    r = client.post("/api/games/G3/bets", json={"amount": "10", "prediction": "Lions"}, headers=USER1)
    assert r.status_code == 400
    assert r.json()["reason"] == "market_closed"


def test_place_bet_unknown_game(client):
    r = client.post("/api/games/nope/bets", json={"amount": "10", "prediction": "Lions"}, headers=USER1)
    assert r.status_code == 404


def test_place_bet_while_one_in_flight(client, registry, store):
    assert registry.begin_placement("user1", "G1")
    r = client.post("/api/games/G1/bets", json={"amount": "10", "prediction": "Lions"}, headers=USER1)
    assert r.status_code == 409
    assert r.json()["reason"] == "busy"
    assert store.inserts == []

    registry.end_placement("user1", "G1")
    r = client.post("/api/games/G1/bets", json={"amount": "10", "prediction": "Lions"}, headers=USER1)
    assert r.status_code == 201


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def test_registry_evicts_oldest(store):
    registry = SessionRegistry(store, MarketSettings(), max_sessions=2)
    first = registry.get("a", "G1")
    registry.get("b", "G1")
    registry.get("c", "G1")
    assert len(registry) == 2
    assert first.closed


def test_registry_reuses_session(store):
    registry = SessionRegistry(store, MarketSettings())
    assert registry.get("user1", "G1") is registry.get("user1", "G1")


def test_registry_skips_session_mid_placement(store):
    registry = SessionRegistry(store, MarketSettings(), max_sessions=2)
    placing = registry.get("a", "G1")
    idle = registry.get("b", "G1")
    assert registry.begin_placement("a", "G1")

    newest = registry.get("c", "G1")

    assert len(registry) == 2
    assert not placing.closed
    assert idle.closed
    assert not newest.closed
    assert registry.get("a", "G1") is placing


class SlowRepeatReadGateway(InMemoryStoreGateway):
    """The first game read returns at once; later ones wait for ``release``."""

    release: asyncio.Event

    def __init__(self):
        super().__init__()
        self.game_reads = 0

    async def get_game(self, game_id):
        self.game_reads += 1
        if self.game_reads > 1:
            await self.release.wait()
        return await super().get_game(game_id)


def test_market_read_during_placement_load_keeps_placement_intact():
    gw = SlowRepeatReadGateway()
    gw.add_game(Game(id="G1", type="win", status="live", team_a="Lions", team_b="Tigers"))
    gw.add_user("user1", 100, name="Asha")
    registry = SessionRegistry(gw, MarketSettings())

    async def scenario():
        gw.release = asyncio.Event()
        placing = registry.get("user1", "G1")
        place_load = asyncio.create_task(placing.load("G1"))
        view_load = asyncio.create_task(registry.viewer("user1").load("G1"))
        await place_load

        placing.set_prediction("Lions")
        placing.set_amount("30")
        result = await placing.submit()

        gw.release.set()
        await view_load
        return placing, result

    placing, result = asyncio.run(scenario())
    assert result.accepted
    assert placing.game.id == "G1"
    assert placing.balance == Decimal("70")
    assert len(gw.inserts) == 1


# ---------------------------------------------------------------------------
# OpenAPI
# ---------------------------------------------------------------------------

def test_bet_rejections_documented(client):
    responses = client.get("/openapi.json").json()["paths"]["/api/games/{game_id}/bets"]["post"]["responses"]
    for code in ("400", "409", "502"):
        schema_ref = responses[code]["content"]["application/json"]["schema"]["$ref"]
        assert schema_ref.endswith("/BetRejectedResponse")
