"""
games.py
========

Score appliers for the party mini-games and the round timers that drive
them.

Each applier validates the round, computes the point delta with
:mod:`scoring` and writes it to the team (and to any per-game progress
field) inside one store transaction.  Guess the word allows three rounds
per team, charades is unlimited, and beer pong scores each player of a team
at most once per session.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Dict, Optional, Sequence, Tuple

from auction import require, team_players
from party_models import Album, Team
from party_store import RosterStore
from scoring import (
    CHARADES_TOTAL_TIME,
    CharadesScore,
    SongScore,
    beer_pong_score,
    calculate_song_score,
    charades_round_score,
    guess_the_word_score,
    pen_fight_scores,
)
from settlement_errors import AlreadyPlayedError, RoundLimitError, SettlementError

logger = logging.getLogger("uvicorn.error")

GUESS_THE_WORD_ROUNDS_PER_TEAM = 3

GUESS_THE_WORD = "guess-the-word"
DUMB_CHARADES = "dumb-charades"
TIMER_LIMITS: Dict[str, Optional[float]] = {
    GUESS_THE_WORD: None,  # stopwatch
    DUMB_CHARADES: CHARADES_TOTAL_TIME,  # countdown
}

TIMER_IDLE = "idle"
TIMER_PLAYING = "playing"
TIMER_STOPPED = "stopped"


class RoundTimer:
    """Wall-clock round timer: idle -> playing -> stopped.

    Parameters
    ----------
    limit : float or None
        Seconds after which a running timer stops by itself (the charades
        countdown).  ``None`` runs as an open stopwatch.
    clock : callable
        Returns the current time in seconds.  Defaults to
        :func:`time.monotonic`.
    """

    def __init__(self, limit: Optional[float] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.limit = limit
        self._clock = clock
        self._started_at: Optional[float] = None
        self._stopped_at: Optional[float] = None

    @property
    def state(self) -> str:
        if self._started_at is None:
            return TIMER_IDLE
        if self._stopped_at is None and not self._expired():
            return TIMER_PLAYING
        return TIMER_STOPPED

    def _expired(self) -> bool:
        return self.limit is not None and self._clock() - self._started_at >= self.limit

    def start(self) -> None:
        self._started_at = self._clock()
        self._stopped_at = None

    def stop(self) -> None:
        if self.state != TIMER_PLAYING:
            raise SettlementError("Timer is not running")
        self._stopped_at = self._clock()

    def reset(self) -> None:
        self._started_at = None
        self._stopped_at = None

    def elapsed(self) -> int:
        """Whole seconds elapsed, capped at the limit."""
        if self._started_at is None:
            return 0
        end = self._stopped_at if self._stopped_at is not None else self._clock()
        seconds = end - self._started_at
        if self.limit is not None:
            seconds = min(seconds, self.limit)
        return math.floor(seconds)

    @property
    def timed_out(self) -> bool:
        return self.limit is not None and self.elapsed() >= self.limit

    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return int(self.limit) - self.elapsed()


class RoundTimers:
    """One timer per (game, team), created on first use."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._timers: Dict[Tuple[str, str], RoundTimer] = {}

    def get(self, game: str, team_id: str) -> RoundTimer:
        if game not in TIMER_LIMITS:
            raise SettlementError(f"{game} has no round timer")
        key = (game, team_id)
        if key not in self._timers:
            self._timers[key] = RoundTimer(TIMER_LIMITS[game], self._clock)
        return self._timers[key]

    def finished_round(self, game: str, team_id: str) -> Tuple[int, bool]:
        """Return (elapsed, timed_out) of a stopped timer and rearm it."""
        timer = self.get(game, team_id)
        if timer.state != TIMER_STOPPED:
            raise SettlementError("Stop the timer before scoring the round")
        result = timer.elapsed(), timer.timed_out
        timer.reset()
        return result

    def clear(self) -> None:
        self._timers.clear()


def _scored(compute, *args):
    try:
        return compute(*args)
    except ValueError as exc:
        raise SettlementError(str(exc)) from exc


def apply_guess_the_word(store: RosterStore, team_id: str, correct_count: int) -> Tuple[Team, int]:
    with store.transaction():
        team: Team = require(store.teams, team_id, "Team")
        if team.guess_the_word_rounds >= GUESS_THE_WORD_ROUNDS_PER_TEAM:
            raise RoundLimitError(f"{team.name} has played all {GUESS_THE_WORD_ROUNDS_PER_TEAM} rounds")
        points = _scored(guess_the_word_score, correct_count)
        store.teams.update(team.id, {
            "score": team.score + points,
            "guess_the_word_rounds": team.guess_the_word_rounds + 1,
        })
    logger.info("guess the word: %s +%s", team.name, points)
    return team, points


def apply_dumb_charades(
    store: RosterStore,
    team_id: str,
    method: str,
    elapsed_seconds: float,
    timed_out: bool = False,
) -> Tuple[Team, CharadesScore]:
    with store.transaction():
        team: Team = require(store.teams, team_id, "Team")
        result = _scored(charades_round_score, method, elapsed_seconds, timed_out)
        store.teams.update(team.id, {
            "score": team.score + result.total,
            "dumb_charades_rounds": team.dumb_charades_rounds + 1,
        })
    logger.info("dumb charades: %s +%s (penalty %s)", team.name, result.total, result.penalty)
    return team, result


def apply_beer_pong(store: RosterStore, team_id: str, player_id: str, correct_throws: int) -> Tuple[Team, int]:
    """Score one player's throws.  A player already scored is rejected."""
    with store.transaction():
        team: Team = require(store.teams, team_id, "Team")
        player = require(store.players, player_id, "Player")
        if player.id not in {p.id for p in team_players(store, team.id)}:
            raise SettlementError(f"{player.name} is not on {team.name}")
        if player.id in team.beer_pong_played_player_ids:
            logger.warning("beer pong: %s already played for %s", player.name, team.name)
            raise AlreadyPlayedError(f"{player.name} has already played beer pong")
        points = _scored(beer_pong_score, correct_throws)
        store.teams.update(team.id, {
            "score": team.score + points,
            "beer_pong_players_played": team.beer_pong_players_played + 1,
            "beer_pong_total_score": team.beer_pong_total_score + points,
            "beer_pong_add_player_id": player.id,
        })
    logger.info("beer pong: %s (%s) +%s", player.name, team.name, points)
    return team, points


def apply_pen_fight(
    store: RosterStore,
    team1_id: str,
    team2_id: str,
    team1_outcomes: Sequence[str],
    team2_outcomes: Sequence[str],
) -> Tuple[Team, Team, int, int]:
    if team1_id == team2_id:
        raise SettlementError("A team cannot fight itself")
    with store.transaction():
        team1: Team = require(store.teams, team1_id, "Team")
        team2: Team = require(store.teams, team2_id, "Team")
        delta1, delta2 = _scored(pen_fight_scores, team1_outcomes, team2_outcomes)
        store.teams.update(team1.id, {"score": team1.score + delta1})
        store.teams.update(team2.id, {"score": team2.score + delta2})
    logger.info("pen fight: %s %+d, %s %+d", team1.name, delta1, team2.name, delta2)
    return team1, team2, delta1, delta2


def apply_popular_song(
    store: RosterStore,
    album_id: str,
    answers: Dict[str, Sequence[Optional[str]]],
) -> Tuple[Album, Dict[str, SongScore]]:
    """Score every team's top-3 guess for an album and mark it played.

    Teams missing from ``answers`` are scored with blank guesses.
    """
    with store.transaction():
        album: Album = require(store.albums, album_id, "Album")
        if album.played:
            raise AlreadyPlayedError(f"{album.name} has already been played")
        if not album.playable:
            raise SettlementError(f"{album.name} needs at least 3 songs")
        for team_id in answers:
            require(store.teams, team_id, "Team")

        results: Dict[str, SongScore] = {}
        for team in store.teams.list():
            result = calculate_song_score(album.songs, answers.get(team.id, []))
            store.teams.update(team.id, {"score": team.score + result.total})
            results[team.id] = result
        store.albums.update(album.id, {"played": True})
    logger.info("popular song: scored %s for %d teams", album.name, len(results))
    return album, results


def adjust_score(store: RosterStore, team_id: str, delta: int) -> Team:
    """Scoreboard +/- control.  The score never drops below zero."""
    with store.transaction():
        team: Team = require(store.teams, team_id, "Team")
        return store.teams.update(team.id, {"score": max(0, team.score + delta)})


def set_score(store: RosterStore, team_id: str, score: int) -> Team:
    with store.transaction():
        require(store.teams, team_id, "Team")
        return store.teams.update(team_id, {"score": max(0, score)})
