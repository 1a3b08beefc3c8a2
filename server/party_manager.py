# server/party_manager.py
import logging
import time
from typing import Callable, Optional

from auction import BidState
from data_loader import load_albums, load_players
from games import RoundTimers
from party_store import RosterStore

logger = logging.getLogger("uvicorn.error")


class PartyManager:
    """
    Owns the state of one party session: the roster store, the live bid on
    the player being auctioned, and the game round timers.
    All mutations go through the auction/trades/games commands.
    """
    def __init__(self, data_dir: Optional[str] = None, clock: Callable[[], float] = time.monotonic):
        self.data_dir = data_dir
        self.store = RosterStore()
        self.bids = BidState()
        self.timers = RoundTimers(clock)

    def seed(self) -> int:
        """Load players and albums from ``data_dir`` into an empty store."""
        if not self.data_dir or len(self.store.players) or len(self.store.albums):
            return 0
        created = 0
        with self.store.transaction():
            for row in load_players(self.data_dir):
                self.store.players.create(**row)
                created += 1
            for row in load_albums(self.data_dir):
                self.store.albums.create(**row)
                created += 1
        logger.info("seeded %d records from %s", created, self.data_dir)
        return created

    def reset_session(self) -> None:
        """Forget the in-memory bid and timers (the store is reset separately)."""
        self.bids.clear()
        self.timers.clear()
