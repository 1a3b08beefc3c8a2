"""Player trades between teams after the auction."""

from __future__ import annotations

import logging
from typing import List, Tuple

from auction import require
from party_models import Player
from party_store import RosterStore
from settlement_errors import InvalidTradeError

logger = logging.getLogger("uvicorn.error")


def trade_eligible_players(store: RosterStore) -> List[Player]:
    """Players on a team who are not captains."""
    return [p for p in store.players.list() if p.team_id is not None and not p.is_captain]


def trade_players(store: RosterStore, player1_id: str, player2_id: str) -> Tuple[Player, Player]:
    """Swap the teams of two non-captain players.

    Sold prices stay with the players.  Both writes happen in one
    transaction.
    """
    with store.transaction():
        player1: Player = require(store.players, player1_id, "Player")
        player2: Player = require(store.players, player2_id, "Player")
        for player in (player1, player2):
            if player.is_captain:
                raise InvalidTradeError(f"{player.name} is a captain and cannot be traded")
            if player.team_id is None:
                raise InvalidTradeError(f"{player.name} is not on a team")
        if player1.team_id == player2.team_id:
            raise InvalidTradeError("Players are already on the same team")

        team1_id, team2_id = player1.team_id, player2.team_id
        store.players.update(player1.id, {"team_id": team2_id})
        store.players.update(player2.id, {"team_id": team1_id})
    logger.info("traded %s <-> %s", player1.name, player2.name)
    return player1, player2
