import os

# Don't load seed CSVs when the app module is imported
os.environ.setdefault("SEED_ON_START", "0")

import pytest
from fastapi.testclient import TestClient

import app as party_app
from auction import BidState
from party_manager import PartyManager
from party_store import RosterStore


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store():
    return RosterStore()


@pytest.fixture
def bids():
    return BidState()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def two_teams(store):
    red = store.teams.create(name="Red")
    blue = store.teams.create(name="Blue")
    return red, blue


@pytest.fixture
def manager(monkeypatch, clock):
    fresh = PartyManager(clock=clock)
    monkeypatch.setattr(party_app, "manager", fresh)
    return fresh


@pytest.fixture
def client(manager):
    return TestClient(party_app.app)
