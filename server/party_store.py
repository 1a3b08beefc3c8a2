"""
party_store.py
==============

This module defines the ``RosterStore`` class, the source of truth for the
players, teams, albums and auction settings of a party session.  It offers
plain get/create/update/delete operations per entity kind and knows nothing
about auction or game rules; those live in :mod:`auction` and :mod:`games`,
which combine several store calls into one logical command.

Commands that touch more than one entity run inside
:meth:`RosterStore.transaction`, which holds the store lock and restores a
snapshot of every collection if the command raises part-way through.

Usage
-----

```python
store = RosterStore()
team = store.teams.create(name="Red Rockets")
player = store.players.create(name="Asha")

with store.transaction():
    store.players.update(player.id, {"team_id": team.id, "sold_price": 150})
    store.teams.update(team.id, {"budget": team.budget - 150})
```
"""

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from party_models import (
    AUCTION_STATUSES,
    DEFAULT_BUDGET,
    DEFAULT_TEAM_COLOR,
    Album,
    Player,
    Settings,
    Song,
    Team,
    field_names,
    nullable_field_names,
)
from party_utils import new_id, utc_now

T = TypeVar("T")

# Fields the store owns; never changed through a partial update.
_READ_ONLY = {"id", "created_at"}

# Additive team update: appended to ``beer_pong_played_player_ids``.
BEER_PONG_ADD_PLAYER_ID = "beer_pong_add_player_id"


def _clean_name(name: Any, kind: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"{kind} name is required")
    return name.strip()


def _check_fields(cls: type, fields: Dict[str, Any], updatable: set, nullable: set) -> None:
    """Reject unknown fields and ``None`` for fields that can't be empty."""
    unknown = set(fields) - updatable
    if unknown:
        raise ValueError(f"cannot update {cls.__name__} fields: {sorted(unknown)}")
    cleared = sorted(k for k, v in fields.items() if v is None and k not in nullable)
    if cleared:
        raise ValueError(f"{cls.__name__} fields cannot be null: {cleared}")


def _copy_rows(rows: Dict[str, Any]) -> Dict[str, Any]:
    """Copy a table for rollback.

    Entities are copied shallowly so photo and cover-art strings are shared;
    lists are copied since the store appends to them in place.
    """
    copied = {}
    for entity_id, entity in rows.items():
        clone = copy.copy(entity)
        for key, value in list(vars(clone).items()):
            if isinstance(value, list):
                setattr(clone, key, list(value))
        copied[entity_id] = clone
    return copied


class EntityTable(Generic[T]):
    """An insertion-ordered collection of one entity kind.

    Parameters
    ----------
    cls : type
        The dataclass stored in this table.
    factory : callable
        Builds a new entity from the create fields, given a fresh id and
        creation timestamp.
    """

    def __init__(self, cls: type, factory: Callable[..., T], lock: threading.RLock) -> None:
        self.cls = cls
        self._factory = factory
        self._lock = lock
        self._updatable = field_names(cls) - _READ_ONLY
        self._nullable = nullable_field_names(cls)
        self._rows: Dict[str, T] = {}

    def list(self) -> List[T]:
        """Return every entity, oldest first."""
        with self._lock:
            return list(self._rows.values())

    def get(self, entity_id: str) -> Optional[T]:
        with self._lock:
            return self._rows.get(entity_id)

    def create(self, **fields: Any) -> T:
        with self._lock:
            entity = self._factory(id=new_id(), created_at=utc_now(), **fields)
            self._rows[entity.id] = entity
            return entity

    def update(self, entity_id: str, fields: Dict[str, Any]) -> Optional[T]:
        """Merge ``fields`` into an entity.

        Only the supplied fields change.  Returns the updated entity, or
        ``None`` when no entity has this id.
        """
        _check_fields(self.cls, fields, self._updatable, self._nullable)
        if "name" in fields:
            fields = {**fields, "name": _clean_name(fields["name"], self.cls.__name__)}
        with self._lock:
            entity = self._rows.get(entity_id)
            if entity is None:
                return None
            for key, value in fields.items():
                setattr(entity, key, value)
            return entity

    def delete(self, entity_id: str) -> Optional[T]:
        """Remove an entity.  Returns it, or ``None`` if it was already gone."""
        with self._lock:
            return self._rows.pop(entity_id, None)

    def delete_all(self) -> None:
        with self._lock:
            self._rows.clear()

    def __len__(self) -> int:
        return len(self._rows)


class TeamTable(EntityTable[Team]):
    """Team table with the additive played-player update."""

    def __init__(self, lock: threading.RLock) -> None:
        super().__init__(Team, _new_team, lock)
        self._updatable = self._updatable | {BEER_PONG_ADD_PLAYER_ID}

    def update(self, entity_id: str, fields: Dict[str, Any]) -> Optional[Team]:
        fields = dict(fields)
        add_player_id = fields.pop(BEER_PONG_ADD_PLAYER_ID, None)
        with self._lock:
            team = super().update(entity_id, fields)
            if team is not None and add_player_id:
                team.beer_pong_played_player_ids.append(add_player_id)
            return team


class AlbumTable(EntityTable[Album]):
    def __init__(self, lock: threading.RLock) -> None:
        super().__init__(Album, _new_album, lock)

    def update(self, entity_id: str, fields: Dict[str, Any]) -> Optional[Album]:
        fields = dict(fields)
        if fields.get("songs") is not None:
            fields["songs"] = _to_songs(fields["songs"])
        return super().update(entity_id, fields)


def _new_player(*, id: str, created_at, name: str, photo: Optional[str] = None) -> Player:
    return Player(id=id, name=_clean_name(name, "Player"), created_at=created_at, photo=photo or None)


def _new_team(
    *,
    id: str,
    created_at,
    name: str,
    color: Optional[str] = None,
    budget: Optional[int] = None,
) -> Team:
    return Team(
        id=id,
        name=_clean_name(name, "Team"),
        created_at=created_at,
        color=color or DEFAULT_TEAM_COLOR,
        budget=budget or DEFAULT_BUDGET,
    )


def _to_songs(raw_songs) -> List[Song]:
    songs: List[Song] = []
    for raw in raw_songs or []:
        if isinstance(raw, Song):
            songs.append(raw)
            continue
        title = raw.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValueError("song title is required")
        songs.append(Song(id=raw.get("id") or new_id(), title=title.strip(), streams=int(raw.get("streams") or 0)))
    return songs


def _new_album(*, id: str, created_at, name: str, cover_art: Optional[str] = None, songs=None) -> Album:
    return Album(
        id=id,
        name=_clean_name(name, "Album"),
        created_at=created_at,
        cover_art=cover_art or None,
        songs=_to_songs(songs),
    )


class RosterStore:
    """Hold the players, teams, albums and settings of one party session."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.players: EntityTable[Player] = EntityTable(Player, _new_player, self._lock)
        self.teams = TeamTable(self._lock)
        self.albums = AlbumTable(self._lock)
        self._settings: Optional[Settings] = None

    # -- settings -------------------------------------------------------

    def get_settings(self) -> Settings:
        """Return the settings singleton, creating the defaults if missing."""
        with self._lock:
            if self._settings is None:
                self._settings = Settings()
            return self._settings

    def update_settings(self, fields: Dict[str, Any]) -> Settings:
        _check_fields(Settings, fields, field_names(Settings), nullable_field_names(Settings))
        status = fields.get("auction_status")
        if status is not None and status not in AUCTION_STATUSES:
            raise ValueError(f"invalid auction status: {status!r}")
        with self._lock:
            settings = self.get_settings()
            for key, value in fields.items():
                setattr(settings, key, value)
            return settings

    def reset_settings(self) -> Settings:
        with self._lock:
            self._settings = Settings()
            return self._settings

    # -- transactions ---------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["RosterStore"]:
        """Run a multi-entity command all-or-nothing.

        The store lock is held for the whole block.  If the block raises,
        every collection and the settings are restored to their state at
        entry and the exception propagates.
        """
        with self._lock:
            snapshot = (
                _copy_rows(self.players._rows),
                _copy_rows(self.teams._rows),
                _copy_rows(self.albums._rows),
                copy.copy(self._settings),
            )
            try:
                yield self
            except BaseException:
                (
                    self.players._rows,
                    self.teams._rows,
                    self.albums._rows,
                    self._settings,
                ) = snapshot
                raise
