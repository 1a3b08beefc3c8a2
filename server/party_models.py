"""
party_models.py
===============

Definitions of the domain objects tracked during a party session: players,
teams, the auction settings singleton and the albums used by the popular
song game.

The design uses plain mutable dataclasses since every entity is updated in
place by the store (partial merges, counters, budget debits).  Field names
are snake_case here; the API layer converts them to camelCase.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import List, Optional

DEFAULT_TEAM_COLOR = "#3B82F6"
DEFAULT_BUDGET = 1000
DEFAULT_BASE_PRICE = 100
DEFAULT_BID_INCREMENT = 10

AUCTION_PENDING = "pending"
AUCTION_IN_PROGRESS = "in-progress"
AUCTION_COMPLETED = "completed"
AUCTION_STATUSES = (AUCTION_PENDING, AUCTION_IN_PROGRESS, AUCTION_COMPLETED)


@dataclass
class Player:
    """A party guest who can be sold to a team or pinned to one as captain.

    Attributes
    ----------
    id : str
        Store-generated identifier.
    name : str
        Display name, trimmed.
    photo : str or None
        Opaque image blob (usually a data URL).  Never interpreted here.
    team_id : str or None
        Team the player belongs to.  ``None`` with ``is_captain`` false means
        the player is still in the unsold pool.
    sold_price : int or None
        Winning bid, set when the player is sold.
    is_captain : bool
        Captains are pinned to a team before the auction and can't be traded.
    """

    id: str
    name: str
    created_at: datetime
    photo: Optional[str] = None
    team_id: Optional[str] = None
    sold_price: Optional[int] = None
    is_captain: bool = False

    @property
    def in_unsold_pool(self) -> bool:
        return self.team_id is None and not self.is_captain


@dataclass
class Team:
    """A team with an auction budget, a running score and per-game progress."""

    id: str
    name: str
    created_at: datetime
    color: str = DEFAULT_TEAM_COLOR
    captain_id: Optional[str] = None
    budget: int = DEFAULT_BUDGET
    score: int = 0
    guess_the_word_rounds: int = 0
    dumb_charades_rounds: int = 0
    pictionary_rounds: int = 0
    pen_fight_rounds: int = 0
    beer_pong_rounds: int = 0
    beer_pong_players_played: int = 0
    beer_pong_played_player_ids: List[str] = field(default_factory=list)
    beer_pong_total_score: int = 0


@dataclass
class Settings:
    """Auction run-state.  Exactly one instance lives in the store."""

    base_price: int = DEFAULT_BASE_PRICE
    bid_increment: int = DEFAULT_BID_INCREMENT
    auction_status: str = AUCTION_PENDING
    current_player_index: int = 0


@dataclass
class Song:
    id: str
    title: str
    streams: int = 0


@dataclass
class Album:
    """An album for the popular song game.  Playable once it has 3+ songs."""

    id: str
    name: str
    created_at: datetime
    cover_art: Optional[str] = None
    songs: List[Song] = field(default_factory=list)
    played: bool = False

    @property
    def playable(self) -> bool:
        return len(self.songs) >= 3


def field_names(cls) -> set[str]:
    """Return the dataclass field names of ``cls``."""
    return {f.name for f in fields(cls)}


def nullable_field_names(cls) -> set[str]:
    """Return the fields of ``cls`` that may hold ``None`` (those defaulting to it)."""
    return {f.name for f in fields(cls) if f.default is None}
