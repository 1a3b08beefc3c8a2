# server/app.py
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import os, logging, uuid, time

from api_models import (
    AlbumCreate, AlbumOut, AlbumUpdate, AuctionSummary, BeerPongRequest, BidRequest,
    CaptainRequest, CharadesOut, CharadesRequest, DeletedOut, GuessTheWordRequest,
    PenFightOut, PenFightRequest, PlayerCreate, PlayerOut, PlayerUpdate, PopularSongOut,
    PopularSongRequest, SaleOut, SaleRequest, ScoreAdjustRequest, ScoreboardEntry, ScoreOut,
    ScoreSetRequest, SettingsOut, SettingsUpdate, SongOut, SongScoreOut, TeamCreate, TeamOut,
    TeamUpdate, TimerOut, TradeOut, TradeRequest,
)
import auction
import games
import trades
from party_manager import PartyManager
from party_utils import format_price_with_symbol, sort_songs_by_streams
from scoring import next_bid
from settlement_errors import SettlementError

DATA_DIR = os.getenv("DATA_DIR", "data")
SEED_ON_START = os.getenv("SEED_ON_START", "1") not in ("0", "false", "no")
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://127.0.0.1:5173,http://localhost:5173,http://localhost:3000").split(",")
    if o.strip()
]

app = FastAPI(title="Party Auction & Games", version="0.1.0")
logger = logging.getLogger("uvicorn.error")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    rid = str(uuid.uuid4())[:8]
    start = time.perf_counter()
    response = None
    try:
        logger.info("REQ %s %s %s", rid, request.method, request.url.path)
        response = await call_next(request)
        return response
    finally:
        dur = time.perf_counter() - start
        logger.info("RES %s %s %.3fs %s", rid, request.url.path, dur, getattr(response, "status_code", "?"))


manager = PartyManager(data_dir=DATA_DIR)
if SEED_ON_START:
    manager.seed()


def _settle(command, *args):
    """Run a settlement command, turning rejections into HTTP errors."""
    try:
        return command(*args)
    except SettlementError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _not_found(kind: str):
    return HTTPException(status_code=404, detail=f"{kind} not found")


def to_player_out(p) -> PlayerOut:
    return PlayerOut.model_validate(p)

def to_team_out(t) -> TeamOut:
    return TeamOut.model_validate(t)

def to_album_out(a) -> AlbumOut:
    return AlbumOut.model_validate(a)

def to_settings_out(s) -> SettingsOut:
    return SettingsOut.model_validate(s)


@app.get("/health")
def health():
    return {"ok": True}


# --- players ----------------------------------------------------------

@app.get("/players", response_model=list[PlayerOut])
def list_players():
    return [to_player_out(p) for p in manager.store.players.list()]

@app.post("/players", response_model=PlayerOut, status_code=201)
def create_player(req: PlayerCreate):
    return to_player_out(_settle(lambda: manager.store.players.create(name=req.name, photo=req.photo)))

@app.patch("/players/{player_id}", response_model=PlayerOut)
def update_player(player_id: str, req: PlayerUpdate):
    player = _settle(manager.store.players.update, player_id, req.model_dump(exclude_unset=True))
    if player is None:
        raise _not_found("Player")
    return to_player_out(player)

@app.delete("/players/{player_id}", response_model=DeletedOut)
def delete_player(player_id: str):
    _settle(auction.delete_player, manager.store, player_id)
    return DeletedOut(message="Player deleted", id=player_id)

@app.delete("/players", response_model=DeletedOut)
def delete_all_players():
    manager.store.players.delete_all()
    return DeletedOut(message="All players deleted")


# --- teams ------------------------------------------------------------

@app.get("/teams", response_model=list[TeamOut])
def list_teams():
    return [to_team_out(t) for t in manager.store.teams.list()]

@app.post("/teams", response_model=TeamOut, status_code=201)
def create_team(req: TeamCreate):
    return to_team_out(_settle(lambda: manager.store.teams.create(name=req.name, color=req.color, budget=req.budget)))

@app.patch("/teams/{team_id}", response_model=TeamOut)
def update_team(team_id: str, req: TeamUpdate):
    team = _settle(manager.store.teams.update, team_id, req.model_dump(exclude_unset=True))
    if team is None:
        raise _not_found("Team")
    return to_team_out(team)

@app.delete("/teams/{team_id}", response_model=DeletedOut)
def delete_team(team_id: str):
    _settle(auction.delete_team, manager.store, team_id)
    return DeletedOut(message="Team deleted", id=team_id)

@app.delete("/teams", response_model=DeletedOut)
def delete_all_teams():
    auction.delete_all_teams(manager.store)
    return DeletedOut(message="All teams deleted")

@app.get("/teams/{team_id}/players", response_model=list[PlayerOut])
def list_team_players(team_id: str):
    if manager.store.teams.get(team_id) is None:
        raise _not_found("Team")
    return [to_player_out(p) for p in auction.team_players(manager.store, team_id)]

@app.post("/teams/{team_id}/captain", response_model=TeamOut)
def assign_captain(team_id: str, req: CaptainRequest):
    team, _ = _settle(auction.assign_captain, manager.store, team_id, req.player_id)
    return to_team_out(team)

@app.get("/captains/available", response_model=list[PlayerOut])
def available_captains():
    return [to_player_out(p) for p in auction.available_captains(manager.store)]


# --- albums -----------------------------------------------------------

@app.get("/albums", response_model=list[AlbumOut])
def list_albums():
    return [to_album_out(a) for a in manager.store.albums.list()]

@app.post("/albums", response_model=AlbumOut, status_code=201)
def create_album(req: AlbumCreate):
    songs = [s.model_dump() for s in req.songs]
    return to_album_out(_settle(lambda: manager.store.albums.create(name=req.name, cover_art=req.cover_art, songs=songs)))

@app.patch("/albums/{album_id}", response_model=AlbumOut)
def update_album(album_id: str, req: AlbumUpdate):
    fields = req.model_dump(exclude_unset=True)
    album = _settle(manager.store.albums.update, album_id, fields)
    if album is None:
        raise _not_found("Album")
    return to_album_out(album)

@app.delete("/albums/{album_id}", response_model=DeletedOut)
def delete_album(album_id: str):
    if manager.store.albums.delete(album_id) is None:
        raise _not_found("Album")
    return DeletedOut(message="Album deleted", id=album_id)

@app.delete("/albums", response_model=DeletedOut)
def delete_all_albums():
    manager.store.albums.delete_all()
    return DeletedOut(message="All albums deleted")


# --- settings ---------------------------------------------------------

@app.get("/settings", response_model=SettingsOut)
def get_settings():
    return to_settings_out(manager.store.get_settings())

@app.patch("/settings", response_model=SettingsOut)
def update_settings(req: SettingsUpdate):
    return to_settings_out(_settle(manager.store.update_settings, req.model_dump(exclude_unset=True)))

@app.delete("/settings", response_model=SettingsOut)
def reset_settings():
    return to_settings_out(manager.store.reset_settings())


# --- auction ----------------------------------------------------------

@app.get("/auction", response_model=AuctionSummary)
def auction_summary():
    store, bids = manager.store, manager.bids
    settings = store.get_settings()
    queue = auction.AuctionQueue(store)
    player = queue.current()
    bidding = player is not None and bids.player_id == player.id
    current_bid = bids.current_bid if bidding else settings.base_price
    highest_bidder = bids.highest_bidder if bidding else None
    return AuctionSummary(
        status=settings.auction_status,
        complete=auction.auction_complete(store),
        ready=auction.auction_ready(store),
        current_player=to_player_out(player) if player else None,
        current_bid=current_bid,
        highest_bidder=highest_bidder,
        next_bid=next_bid(highest_bidder is not None, current_bid, settings.base_price, settings.bid_increment),
        unsold_count=len(queue),
        current_player_index=settings.current_player_index,
    )

@app.post("/auction/bid", response_model=AuctionSummary)
def place_bid(req: BidRequest):
    _settle(auction.place_bid, manager.store, manager.bids, req.team_id)
    return auction_summary()

@app.post("/auction/sold", response_model=SaleOut)
def sell_current():
    player, team = _settle(auction.sell_current, manager.store, manager.bids)
    return SaleOut(player=to_player_out(player), team=to_team_out(team))

@app.post("/auction/sale", response_model=SaleOut)
def confirm_sale(req: SaleRequest):
    player, team = _settle(auction.confirm_sale, manager.store, req.player_id, req.team_id, req.price)
    if manager.bids.player_id == player.id:
        manager.bids.clear()
    return SaleOut(player=to_player_out(player), team=to_team_out(team))

@app.post("/auction/skip", response_model=AuctionSummary)
def skip_player():
    _settle(auction.skip_player, manager.store, manager.bids)
    return auction_summary()

@app.post("/auction/finish", response_model=AuctionSummary)
def finish_auction():
    auction.finish_auction(manager.store)
    return auction_summary()

@app.post("/auction/reset", response_model=AuctionSummary)
def reset_auction():
    auction.reset_auction(manager.store, manager.bids)
    return auction_summary()

@app.post("/trades", response_model=TradeOut)
def trade(req: TradeRequest):
    p1, p2 = _settle(trades.trade_players, manager.store, req.player1_id, req.player2_id)
    return TradeOut(player1=to_player_out(p1), player2=to_player_out(p2))

@app.get("/trades/eligible", response_model=list[PlayerOut])
def trade_eligible():
    return [to_player_out(p) for p in trades.trade_eligible_players(manager.store)]


# --- games ------------------------------------------------------------

@app.post("/games/guess-the-word/score", response_model=ScoreOut)
def score_guess_the_word(req: GuessTheWordRequest):
    team, points = _settle(games.apply_guess_the_word, manager.store, req.team_id, req.correct_answers)
    return ScoreOut(team=to_team_out(team), points=points)

@app.post("/games/dumb-charades/score", response_model=CharadesOut)
def score_dumb_charades(req: CharadesRequest):
    if manager.store.teams.get(req.team_id) is None:
        raise _not_found("Team")
    if req.elapsed_seconds is None:
        elapsed, timed_out = _settle(manager.timers.finished_round, games.DUMB_CHARADES, req.team_id)
    else:
        elapsed, timed_out = req.elapsed_seconds, req.timed_out
    team, result = _settle(games.apply_dumb_charades, manager.store, req.team_id, req.method, elapsed, timed_out)
    return CharadesOut(
        team=to_team_out(team),
        base=result.base,
        penalty=result.penalty,
        total=result.total,
        elapsed_seconds=result.elapsed,
    )

@app.post("/games/beer-pong/score", response_model=ScoreOut)
def score_beer_pong(req: BeerPongRequest):
    team, points = _settle(games.apply_beer_pong, manager.store, req.team_id, req.player_id, req.correct_throws)
    return ScoreOut(team=to_team_out(team), points=points)

@app.post("/games/pen-fight/score", response_model=PenFightOut)
def score_pen_fight(req: PenFightRequest):
    team1, team2, d1, d2 = _settle(
        games.apply_pen_fight, manager.store, req.team1_id, req.team2_id, req.team1_outcomes, req.team2_outcomes
    )
    return PenFightOut(team1=to_team_out(team1), team2=to_team_out(team2), team1_delta=d1, team2_delta=d2)

@app.post("/games/popular-song/score", response_model=PopularSongOut)
def score_popular_song(req: PopularSongRequest):
    album, results = _settle(games.apply_popular_song, manager.store, req.album_id, req.answers)
    top3 = sort_songs_by_streams(album.songs)[:3]
    return PopularSongOut(
        album=to_album_out(album),
        correct=[SongOut.model_validate(s) for s in top3],
        results=[
            SongScoreOut(
                team_id=team_id,
                score=r.total,
                breakdown=r.breakdown,
                answers=req.answers.get(team_id, []),
            )
            for team_id, r in results.items()
        ],
    )

@app.get("/games/popular-song/albums", response_model=list[AlbumOut])
def unplayed_albums():
    return [to_album_out(a) for a in manager.store.albums.list() if not a.played]

def _timer_out(game: str, team_id: str) -> TimerOut:
    timer = manager.timers.get(game, team_id)
    return TimerOut(
        game=game,
        team_id=team_id,
        state=timer.state,
        elapsed_seconds=timer.elapsed(),
        remaining_seconds=timer.remaining(),
        timed_out=timer.timed_out,
    )

@app.get("/games/{game}/teams/{team_id}/timer", response_model=TimerOut)
def timer_status(game: str, team_id: str):
    if manager.store.teams.get(team_id) is None:
        raise _not_found("Team")
    return _settle(_timer_out, game, team_id)

@app.post("/games/{game}/teams/{team_id}/timer/{action}", response_model=TimerOut)
def timer_action(game: str, team_id: str, action: str):
    if manager.store.teams.get(team_id) is None:
        raise _not_found("Team")
    timer = _settle(manager.timers.get, game, team_id)
    if action == "start":
        timer.start()
    elif action == "stop":
        _settle(timer.stop)
    elif action == "reset":
        timer.reset()
    else:
        raise HTTPException(status_code=400, detail=f"unknown timer action: {action}")
    return _timer_out(game, team_id)


# --- scoreboard -------------------------------------------------------

@app.get("/scoreboard", response_model=list[ScoreboardEntry])
def scoreboard():
    teams = sorted(manager.store.teams.list(), key=lambda t: t.score, reverse=True)
    return [
        ScoreboardEntry(
            rank=i + 1,
            team=to_team_out(t),
            players=[to_player_out(p) for p in auction.team_players(manager.store, t.id)],
            budget_display=format_price_with_symbol(t.budget),
        )
        for i, t in enumerate(teams)
    ]

@app.post("/scoreboard/{team_id}/adjust", response_model=TeamOut)
def adjust_score(team_id: str, req: ScoreAdjustRequest):
    return to_team_out(_settle(games.adjust_score, manager.store, team_id, req.delta))

@app.post("/scoreboard/{team_id}/set", response_model=TeamOut)
def set_score(team_id: str, req: ScoreSetRequest):
    return to_team_out(_settle(games.set_score, manager.store, team_id, req.score))


@app.post("/reset", response_model=DeletedOut)
def reset_all():
    auction.reset_all(manager.store, manager.bids)
    manager.reset_session()
    return DeletedOut(message="Party reset")
