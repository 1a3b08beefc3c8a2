"""
auction.py
==========

Auction settlement: bidding on the current player, confirming sales,
skipping, finishing and resetting the auction, plus the roster commands
that keep captaincy and team membership consistent (captain assignment and
the cascades run when a team or player is deleted).

Every command that writes more than one entity runs inside a single
:meth:`party_store.RosterStore.transaction`, so a failure leaves neither
the player nor the team half-updated.

The auction order is not stored.  :class:`AuctionQueue` recomputes the
unsold pool from the players on every read and uses
``Settings.current_player_index`` as a rotating cursor into it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from party_models import (
    AUCTION_COMPLETED,
    AUCTION_IN_PROGRESS,
    AUCTION_PENDING,
    DEFAULT_BUDGET,
    Player,
    Settings,
    Team,
)
from party_store import EntityTable, RosterStore
from scoring import can_afford, next_bid
from settlement_errors import EntityNotFoundError, InsufficientBudgetError, SettlementError

logger = logging.getLogger("uvicorn.error")

MIN_AUCTION_TEAMS = 2


def require(table: EntityTable, entity_id: str, kind: str):
    """Return the entity with ``entity_id`` or raise :class:`EntityNotFoundError`."""
    entity = table.get(entity_id)
    if entity is None:
        raise EntityNotFoundError(kind, entity_id)
    return entity


def unsold_players(store: RosterStore) -> List[Player]:
    """Players with no team who are not captains, oldest first."""
    return [p for p in store.players.list() if p.in_unsold_pool]


def team_players(store: RosterStore, team_id: str) -> List[Player]:
    return [p for p in store.players.list() if p.team_id == team_id]


def available_captains(store: RosterStore) -> List[Player]:
    """Players that no team has claimed as captain."""
    captain_ids = {t.captain_id for t in store.teams.list() if t.captain_id}
    return [p for p in store.players.list() if p.id not in captain_ids]


class AuctionQueue:
    """The unsold pool in auction order with the rotating cursor.

    ``index`` may point past the end of the pool after a sale shrinks it;
    the current player then falls back to the first unsold player.
    """

    def __init__(self, store: RosterStore) -> None:
        self.players = unsold_players(store)
        self.index = store.get_settings().current_player_index

    def __len__(self) -> int:
        return len(self.players)

    def current(self) -> Optional[Player]:
        if not self.players:
            return None
        if 0 <= self.index < len(self.players):
            return self.players[self.index]
        return self.players[0]

    def next_index(self) -> int:
        return (self.index + 1) % max(1, len(self.players))


@dataclass
class BidState:
    """Live bidding on the current player.  Kept in memory until the sale."""

    player_id: Optional[str] = None
    current_bid: int = 0
    highest_bidder: Optional[str] = None

    def follow(self, player_id: str, base_price: int) -> None:
        """Start fresh bidding when the player on the block changes."""
        if player_id != self.player_id:
            self.player_id = player_id
            self.current_bid = base_price
            self.highest_bidder = None

    def clear(self) -> None:
        self.player_id = None
        self.current_bid = 0
        self.highest_bidder = None


def auction_complete(store: RosterStore) -> bool:
    return not unsold_players(store) or store.get_settings().auction_status == AUCTION_COMPLETED


def auction_ready(store: RosterStore) -> bool:
    """The auction can run once at least two teams exist."""
    return len(store.teams) >= MIN_AUCTION_TEAMS


def _require_ready(store: RosterStore) -> None:
    if not auction_ready(store):
        raise SettlementError(f"You need at least {MIN_AUCTION_TEAMS} teams to run the auction")


def place_bid(store: RosterStore, bids: BidState, team_id: str) -> int:
    """Raise the bid on the current player on behalf of ``team_id``.

    The first bid is the base price, later ones add the bid increment.  A
    bid the team cannot afford is rejected and the bidding is unchanged.
    Returns the new current bid.
    """
    with store.transaction():
        team: Team = require(store.teams, team_id, "Team")
        settings = store.get_settings()
        if settings.auction_status == AUCTION_COMPLETED:
            raise SettlementError("Auction is already completed")
        _require_ready(store)
        player = AuctionQueue(store).current()
        if player is None:
            raise SettlementError("No players left to auction")

        bids.follow(player.id, settings.base_price)
        amount = next_bid(
            bids.highest_bidder is not None,
            bids.current_bid,
            settings.base_price,
            settings.bid_increment,
        )
        if not can_afford(amount, team.budget):
            logger.warning("bid rejected: %s cannot afford %s (budget %s)", team.name, amount, team.budget)
            raise InsufficientBudgetError(team.name, amount, team.budget)

        if settings.auction_status == AUCTION_PENDING:
            store.update_settings({"auction_status": AUCTION_IN_PROGRESS})
        bids.current_bid = amount
        bids.highest_bidder = team_id
        return amount


def confirm_sale(store: RosterStore, player_id: str, team_id: str, price: int) -> Tuple[Player, Team]:
    """Sell a player from the unsold pool to a team.

    The player's team and sold price are set and the team's budget is
    debited by exactly ``price``, in one transaction.  The budget is not
    clamped; it can go negative.
    """
    if price < 0:
        raise SettlementError("Sale price cannot be negative")
    with store.transaction():
        player: Player = require(store.players, player_id, "Player")
        team: Team = require(store.teams, team_id, "Team")
        if not player.in_unsold_pool:
            raise SettlementError(f"{player.name} is not in the auction pool")
        store.players.update(player.id, {"team_id": team.id, "sold_price": price})
        store.teams.update(team.id, {"budget": team.budget - price})
    logger.info("sold %s to %s for %s", player.name, team.name, price)
    return player, team


def sell_current(store: RosterStore, bids: BidState) -> Tuple[Player, Team]:
    """Sell the player on the block to the highest bidder at the current bid."""
    with store.transaction():
        _require_ready(store)
        player = AuctionQueue(store).current()
        if player is None or bids.player_id != player.id or bids.highest_bidder is None:
            raise SettlementError("No bids on the current player")
        sold = confirm_sale(store, player.id, bids.highest_bidder, bids.current_bid)
    bids.clear()
    return sold


def skip_player(store: RosterStore, bids: BidState) -> Settings:
    """Move the cursor to the next unsold player, wrapping around the pool."""
    with store.transaction():
        queue = AuctionQueue(store)
        settings = store.update_settings({"current_player_index": queue.next_index()})
    bids.clear()
    return settings


def finish_auction(store: RosterStore) -> Settings:
    """Complete the auction now, even if players remain unsold."""
    settings = store.update_settings({"auction_status": AUCTION_COMPLETED})
    logger.info("auction finished with %d unsold players", len(unsold_players(store)))
    return settings


def reset_auction(store: RosterStore, bids: BidState) -> None:
    """Return every non-captain to the pool and restore budgets and settings."""
    with store.transaction():
        for player in store.players.list():
            if not player.is_captain:
                store.players.update(player.id, {"team_id": None, "sold_price": None})
        for team in store.teams.list():
            store.teams.update(team.id, {"budget": DEFAULT_BUDGET})
        store.reset_settings()
    bids.clear()
    logger.info("auction reset")


def reset_all(store: RosterStore, bids: BidState) -> None:
    """Delete every player, team and album and restore default settings."""
    with store.transaction():
        store.players.delete_all()
        store.teams.delete_all()
        store.albums.delete_all()
        store.reset_settings()
    bids.clear()
    logger.info("party reset")


def assign_captain(store: RosterStore, team_id: str, player_id: str) -> Tuple[Team, Player]:
    """Pin a player to a team as its captain.

    The team's previous captain stays on the team as a regular member, and
    any other team that claimed this player as captain loses its captain.
    """
    with store.transaction():
        team: Team = require(store.teams, team_id, "Team")
        player: Player = require(store.players, player_id, "Player")

        previous_id = team.captain_id
        if previous_id and previous_id != player.id and store.players.get(previous_id):
            store.players.update(previous_id, {"is_captain": False})
        for other in store.teams.list():
            if other.id != team.id and other.captain_id == player.id:
                store.teams.update(other.id, {"captain_id": None})

        store.players.update(player.id, {"is_captain": True, "team_id": team.id})
        store.teams.update(team.id, {"captain_id": player.id})
    logger.info("%s is now captain of %s", player.name, team.name)
    return team, player


def delete_team(store: RosterStore, team_id: str) -> Team:
    """Delete a team and send its players back to the unsold pool."""
    with store.transaction():
        team = store.teams.delete(team_id)
        if team is None:
            raise EntityNotFoundError("Team", team_id)
        for player in team_players(store, team.id):
            store.players.update(player.id, {"team_id": None, "sold_price": None, "is_captain": False})
    return team


def delete_all_teams(store: RosterStore) -> None:
    """Delete every team; all players go back to the unsold pool."""
    with store.transaction():
        store.teams.delete_all()
        for player in store.players.list():
            if not player.in_unsold_pool:
                store.players.update(player.id, {"team_id": None, "sold_price": None, "is_captain": False})


def delete_player(store: RosterStore, player_id: str) -> Player:
    """Delete a player and clear any team's captaincy pointing at them."""
    with store.transaction():
        player = store.players.delete(player_id)
        if player is None:
            raise EntityNotFoundError("Player", player_id)
        for team in store.teams.list():
            if team.captain_id == player.id:
                store.teams.update(team.id, {"captain_id": None})
    return player
