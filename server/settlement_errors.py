"""Typed exceptions raised by the auction and game settlement commands.

Settlement functions raise these instead of returning error codes; the API
layer turns them into HTTP responses.  A command that raises has not
changed any state (it runs inside a store transaction).
"""


class SettlementError(Exception):
    """Base class.  The command was rejected."""

    status_code = 400


class EntityNotFoundError(SettlementError):
    """An id in the command does not resolve to an entity."""

    status_code = 404

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found")


class InsufficientBudgetError(SettlementError):
    """The bidding team cannot afford the next bid."""

    def __init__(self, team_name: str, bid: int, budget: int) -> None:
        self.bid = bid
        self.budget = budget
        super().__init__(f"{team_name} doesn't have enough budget for {bid} ({budget} remaining)")


class InvalidTradeError(SettlementError):
    """Players cannot be swapped (captain, unassigned, or same team)."""


class RoundLimitError(SettlementError):
    """The team has already played every round of this game."""


class AlreadyPlayedError(SettlementError):
    """The player or album has already been scored this session."""
