"""Scoring functions for the auction bid ladder and each party game."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from party_models import Song
from party_utils import sort_songs_by_streams

# Dumb charades
CHARADES_TOTAL_TIME = 120
CHARADES_FREE_SECONDS = 30
CHARADES_PENALTY_INTERVAL = 20
CHARADES_PENALTY_STEP = 5
CHARADES_MAX_PENALTY_STEPS = 5
CHARADES_BASE_POINTS = {"action": 50, "letter": 25}

# Guess the word / beer pong
WORDS_PER_ROUND = 5
THROWS_PER_PLAYER = 5
POINTS_PER_HIT = 5
PERFECT_ROUND_POINTS = 30

# Popular song
SONG_IN_TOP3_POINTS = 5
SONG_EXACT_POINTS = 5
SONG_NUMBER_ONE_BONUS = 5
SONG_PERFECT_BONUS = 15

# Pen fight
PEN_FIGHT_SLOTS = 3
PEN_FIGHT_OUTCOMES = ("playing", "knocked_out", "ring_out", "friendly_fire", "winner")
KNOCKED_OUT_POINTS = 20
RING_OUT_POINTS = -10
FRIENDLY_FIRE_POINTS = -10
WINNER_POINTS = 20


def next_bid(has_bidder: bool, current_bid: int, base_price: int, bid_increment: int) -> int:
    """Return the amount of the next bid on the current player.

    The opening bid is the base price; every later bid raises the current
    one by the configured increment.  There is no ceiling other than the
    bidding team's budget (see :func:`can_afford`).
    """
    if has_bidder:
        return current_bid + bid_increment
    return base_price


def can_afford(bid: int, budget: int) -> bool:
    return bid <= budget


@dataclass
class SongScore:
    total: int = 0
    breakdown: Dict[str, int] = field(default_factory=dict)


def calculate_song_score(songs: Sequence[Song], answers: Sequence[Optional[str]]) -> SongScore:
    """
    Score a team's guess of an album's three most-streamed songs.

    Scoring (components add up):
        - 5 points per distinct guessed song that is anywhere in the true top 3
        - 5 points per guess in its exact position
        - 5 point bonus if the #1 song is guessed in any position
        - 15 point bonus if all three positions are exact

    Args:
        songs: All songs of the album, in entry order
        answers: Song ids guessed for positions 1..3; blanks never match

    Returns a zero score when the album has fewer than three songs.
    """
    ranked = sort_songs_by_streams(songs)
    if len(ranked) < 3:
        return SongScore()

    top3 = [s.id for s in ranked[:3]]
    guesses = list(answers)[:3]

    # a song guessed twice only counts once
    in_top3 = len({g for g in guesses if g} & set(top3))
    exact = sum(1 for i, g in enumerate(guesses) if g and g == top3[i])

    breakdown = {
        "inTop3": in_top3 * SONG_IN_TOP3_POINTS,
        "exactMatches": exact * SONG_EXACT_POINTS,
        "numberOneBonus": SONG_NUMBER_ONE_BONUS if top3[0] in guesses else 0,
        "perfectBonus": SONG_PERFECT_BONUS if exact == 3 else 0,
    }
    return SongScore(total=sum(breakdown.values()), breakdown=breakdown)


def charades_time_penalty(elapsed_seconds: float) -> int:
    """-5 points for each started 20 seconds past the first 30, at most -25."""
    if elapsed_seconds <= CHARADES_FREE_SECONDS:
        return 0
    intervals = math.floor((elapsed_seconds - CHARADES_FREE_SECONDS) / CHARADES_PENALTY_INTERVAL)
    return min(intervals + 1, CHARADES_MAX_PENALTY_STEPS) * CHARADES_PENALTY_STEP


@dataclass
class CharadesScore:
    base: int
    penalty: int
    total: int
    elapsed: float


def charades_round_score(method: str, elapsed_seconds: float, timed_out: bool = False) -> CharadesScore:
    """Score a charades round guessed by ``action`` or ``letter`` (letter by letter).

    A round whose timer ran out scores nothing, whatever the method.
    """
    if method not in CHARADES_BASE_POINTS:
        raise ValueError(f"unknown charades method: {method!r}")
    if elapsed_seconds < 0:
        raise ValueError("elapsed time cannot be negative")
    if timed_out or elapsed_seconds >= CHARADES_TOTAL_TIME:
        return CharadesScore(base=0, penalty=0, total=0, elapsed=elapsed_seconds)

    base = CHARADES_BASE_POINTS[method]
    penalty = charades_time_penalty(elapsed_seconds)
    return CharadesScore(base=base, penalty=penalty, total=max(0, base - penalty), elapsed=elapsed_seconds)


def _hit_score(hits: int, limit: int) -> int:
    if not 0 <= hits <= limit:
        raise ValueError(f"count must be between 0 and {limit}, got {hits}")
    if hits == limit:
        return PERFECT_ROUND_POINTS
    return hits * POINTS_PER_HIT


def guess_the_word_score(correct_count: int) -> int:
    """5 points per word guessed; all five words is worth 30."""
    return _hit_score(correct_count, WORDS_PER_ROUND)


def beer_pong_score(correct_throws: int) -> int:
    """5 points per cup hit; all five throws is worth 30."""
    return _hit_score(correct_throws, THROWS_PER_PLAYER)


def _pen_fight_side(outcomes: Sequence[str]) -> Tuple[int, int]:
    """Return (own_delta, opponent_delta) for one side's slots."""
    own = 0
    opponent = 0
    for outcome in outcomes:
        if outcome not in PEN_FIGHT_OUTCOMES:
            raise ValueError(f"unknown pen fight outcome: {outcome!r}")
        if outcome == "knocked_out":
            # the player was knocked out by the other side
            opponent += KNOCKED_OUT_POINTS
        elif outcome == "ring_out":
            own += RING_OUT_POINTS
        elif outcome == "friendly_fire":
            own += FRIENDLY_FIRE_POINTS
        elif outcome == "winner":
            own += WINNER_POINTS
    return own, opponent


def pen_fight_scores(team1_outcomes: Sequence[str], team2_outcomes: Sequence[str]) -> Tuple[int, int]:
    """Compute the score deltas of both teams after a pen fight.

    Deltas may be negative; they are added to the running score unclamped.
    """
    for outcomes in (team1_outcomes, team2_outcomes):
        if len(outcomes) != PEN_FIGHT_SLOTS:
            raise ValueError(f"pen fight needs {PEN_FIGHT_SLOTS} outcomes per team")
    own1, to_team2 = _pen_fight_side(team1_outcomes)
    own2, to_team1 = _pen_fight_side(team2_outcomes)
    return own1 + to_team1, own2 + to_team2
