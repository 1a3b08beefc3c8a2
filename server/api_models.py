from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    # JSON uses camelCase, Python code uses snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- entities ---------------------------------------------------------

class PlayerOut(ApiModel):
    id: str
    name: str
    photo: Optional[str] = None
    team_id: Optional[str] = None
    sold_price: Optional[int] = None
    is_captain: bool = False
    created_at: datetime

class PlayerCreate(ApiModel):
    name: str = Field(..., min_length=1)
    photo: Optional[str] = None

class PlayerUpdate(ApiModel):
    model_config = ConfigDict(extra="forbid")
    name: Optional[str] = Field(None, min_length=1)
    photo: Optional[str] = None
    team_id: Optional[str] = None
    sold_price: Optional[int] = None
    is_captain: Optional[bool] = None

class TeamOut(ApiModel):
    id: str
    name: str
    color: str
    captain_id: Optional[str] = None
    budget: int
    score: int
    guess_the_word_rounds: int = 0
    dumb_charades_rounds: int = 0
    pictionary_rounds: int = 0
    pen_fight_rounds: int = 0
    beer_pong_rounds: int = 0
    beer_pong_players_played: int = 0
    beer_pong_played_player_ids: List[str] = []
    beer_pong_total_score: int = 0
    created_at: datetime

class TeamCreate(ApiModel):
    name: str = Field(..., min_length=1)
    color: Optional[str] = None
    budget: Optional[int] = Field(None, ge=0)

class TeamUpdate(ApiModel):
    model_config = ConfigDict(extra="forbid")
    name: Optional[str] = Field(None, min_length=1)
    color: Optional[str] = None
    captain_id: Optional[str] = None
    budget: Optional[int] = None
    score: Optional[int] = None
    guess_the_word_rounds: Optional[int] = Field(None, ge=0)
    dumb_charades_rounds: Optional[int] = Field(None, ge=0)
    pictionary_rounds: Optional[int] = Field(None, ge=0)
    pen_fight_rounds: Optional[int] = Field(None, ge=0)
    beer_pong_rounds: Optional[int] = Field(None, ge=0)
    beer_pong_players_played: Optional[int] = Field(None, ge=0)
    beer_pong_total_score: Optional[int] = None
    # appended to beerPongPlayedPlayerIds, never replaces it
    beer_pong_add_player_id: Optional[str] = None

class SongIn(ApiModel):
    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    streams: int = Field(0, ge=0)

class SongOut(ApiModel):
    id: str
    title: str
    streams: int

class AlbumOut(ApiModel):
    id: str
    name: str
    cover_art: Optional[str] = None
    songs: List[SongOut]
    played: bool
    created_at: datetime

class AlbumCreate(ApiModel):
    name: str = Field(..., min_length=1)
    cover_art: Optional[str] = None
    songs: List[SongIn] = []

class AlbumUpdate(ApiModel):
    model_config = ConfigDict(extra="forbid")
    name: Optional[str] = Field(None, min_length=1)
    cover_art: Optional[str] = None
    songs: Optional[List[SongIn]] = None
    played: Optional[bool] = None

AuctionStatus = Literal["pending", "in-progress", "completed"]

class SettingsOut(ApiModel):
    base_price: int
    bid_increment: int
    auction_status: AuctionStatus
    current_player_index: int

class SettingsUpdate(ApiModel):
    model_config = ConfigDict(extra="forbid")
    base_price: Optional[int] = Field(None, ge=0)
    bid_increment: Optional[int] = Field(None, ge=1)
    auction_status: Optional[AuctionStatus] = None
    current_player_index: Optional[int] = Field(None, ge=0)

class DeletedOut(ApiModel):
    message: str
    id: Optional[str] = None


# --- auction ----------------------------------------------------------

class AuctionSummary(ApiModel):
    status: AuctionStatus
    complete: bool
    # at least two teams exist
    ready: bool
    current_player: Optional[PlayerOut] = None
    current_bid: int
    highest_bidder: Optional[str] = None
    next_bid: int
    unsold_count: int
    current_player_index: int

class BidRequest(ApiModel):
    team_id: str

class SaleRequest(ApiModel):
    player_id: str
    team_id: str
    price: int = Field(..., ge=0)

class SaleOut(ApiModel):
    player: PlayerOut
    team: TeamOut

class CaptainRequest(ApiModel):
    player_id: str

class TradeRequest(ApiModel):
    player1_id: str
    player2_id: str

class TradeOut(ApiModel):
    player1: PlayerOut
    player2: PlayerOut


# --- games ------------------------------------------------------------

class GuessTheWordRequest(ApiModel):
    team_id: str
    correct_answers: int = Field(..., ge=0, le=5)

class CharadesRequest(ApiModel):
    team_id: str
    method: Literal["action", "letter"] = "action"
    # omitted: taken from the team's stopped timer
    elapsed_seconds: Optional[float] = Field(None, ge=0)
    timed_out: bool = False

class CharadesOut(ApiModel):
    team: TeamOut
    base: int
    penalty: int
    total: int
    elapsed_seconds: float

class BeerPongRequest(ApiModel):
    team_id: str
    player_id: str
    correct_throws: int = Field(..., ge=0, le=5)

PenFightOutcome = Literal["playing", "knocked_out", "ring_out", "friendly_fire", "winner"]

class PenFightRequest(ApiModel):
    team1_id: str
    team2_id: str
    team1_outcomes: List[PenFightOutcome] = Field(..., min_length=3, max_length=3)
    team2_outcomes: List[PenFightOutcome] = Field(..., min_length=3, max_length=3)

class PenFightOut(ApiModel):
    team1: TeamOut
    team2: TeamOut
    team1_delta: int
    team2_delta: int

class PopularSongRequest(ApiModel):
    album_id: str
    # team id -> guessed song ids for ranks 1..3 (blank = no guess)
    answers: Dict[str, List[Optional[str]]] = {}

class SongScoreOut(ApiModel):
    team_id: str
    score: int
    breakdown: Dict[str, int]
    answers: List[Optional[str]]

class PopularSongOut(ApiModel):
    album: AlbumOut
    correct: List[SongOut]
    results: List[SongScoreOut]

class ScoreOut(ApiModel):
    team: TeamOut
    points: int

class TimerOut(ApiModel):
    game: str
    team_id: str
    state: Literal["idle", "playing", "stopped"]
    elapsed_seconds: int
    remaining_seconds: Optional[int] = None
    timed_out: bool


# --- scoreboard -------------------------------------------------------

class ScoreAdjustRequest(ApiModel):
    delta: int

class ScoreSetRequest(ApiModel):
    score: int

class ScoreboardEntry(ApiModel):
    rank: int
    team: TeamOut
    players: List[PlayerOut]
    budget_display: str
