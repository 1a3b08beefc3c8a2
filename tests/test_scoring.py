"""Unit tests for scoring functions."""

import pytest

from party_models import Song
from scoring import (
    beer_pong_score,
    calculate_song_score,
    can_afford,
    charades_round_score,
    charades_time_penalty,
    guess_the_word_score,
    next_bid,
    pen_fight_scores,
)


def _album_songs():
    return [
        Song(id="s1", title="Deep Cut", streams=10),
        Song(id="s2", title="Smash Hit", streams=900),
        Song(id="s3", title="Radio Single", streams=500),
        Song(id="s4", title="Fan Favourite", streams=300),
    ]


class TestBidLadder:
    def test_opening_bid_is_base_price(self):
        assert next_bid(False, 0, base_price=100, bid_increment=10) == 100

    def test_opening_bid_ignores_stale_current_bid(self):
        assert next_bid(False, 250, base_price=100, bid_increment=10) == 100

    def test_raise_adds_increment(self):
        assert next_bid(True, 100, base_price=100, bid_increment=10) == 110

    def test_budget_check(self):
        assert can_afford(110, 110)
        assert not can_afford(120, 110)


class TestSongScore:
    """Top 3 by streams here is s2, s3, s4."""

    def test_perfect_guess(self):
        """Exact order: 15 in top 3 + 15 exact + 5 for #1 + 15 perfect bonus."""
        result = calculate_song_score(_album_songs(), ["s2", "s3", "s4"])
        assert result.total == 50
        assert result.breakdown == {
            "inTop3": 15,
            "exactMatches": 15,
            "numberOneBonus": 5,
            "perfectBonus": 15,
        }

    def test_right_songs_wrong_order(self):
        result = calculate_song_score(_album_songs(), ["s3", "s4", "s2"])
        assert result.breakdown["inTop3"] == 15
        assert result.breakdown["exactMatches"] == 0
        assert result.breakdown["numberOneBonus"] == 5
        assert result.total == 20

    def test_number_one_only(self):
        result = calculate_song_score(_album_songs(), ["s2", "s1", ""])
        assert result.total == 5 + 5 + 5

    def test_no_correct_songs(self):
        result = calculate_song_score(_album_songs(), ["s1", "", None])
        assert result.total == 0

    def test_repeated_guess_counts_once(self):
        result = calculate_song_score(_album_songs(), ["s2", "s2", "s2"])
        assert result.breakdown["inTop3"] == 5
        assert result.breakdown["exactMatches"] == 5
        assert result.total == 15

    def test_blank_answers(self):
        assert calculate_song_score(_album_songs(), []).total == 0

    def test_fewer_than_three_songs_scores_zero(self):
        songs = _album_songs()[:2]
        assert calculate_song_score(songs, ["s2", "s1", ""]).total == 0

    def test_ties_keep_entry_order(self):
        songs = [
            Song(id="a", title="A", streams=5),
            Song(id="b", title="B", streams=5),
            Song(id="c", title="C", streams=5),
            Song(id="d", title="D", streams=5),
        ]
        assert calculate_song_score(songs, ["a", "b", "c"]).breakdown["perfectBonus"] == 15
        assert calculate_song_score(songs, ["a", "b", "d"]).breakdown["inTop3"] == 10

    @pytest.mark.parametrize("position", [0, 1, 2])
    def test_fixing_a_position_never_lowers_score(self, position):
        correct = ["s2", "s3", "s4"]
        wrong = ["s1", "s1", "s1"]
        for base in (wrong, ["s3", "s2", "s1"], ["s4", "s1", "s3"]):
            worse = list(base)
            worse[position] = "s1"
            better = list(base)
            better[position] = correct[position]
            assert (
                calculate_song_score(_album_songs(), better).total
                >= calculate_song_score(_album_songs(), worse).total
            )


class TestCharades:
    @pytest.mark.parametrize("elapsed,penalty", [
        (0, 0),
        (30, 0),
        (31, 5),
        (49, 5),
        (50, 10),
        (90, 20),
        (110, 25),
        (200, 25),
    ])
    def test_time_penalty(self, elapsed, penalty):
        assert charades_time_penalty(elapsed) == penalty

    def test_action_guess(self):
        result = charades_round_score("action", 45)
        assert (result.base, result.penalty, result.total) == (50, 5, 45)

    def test_letter_guess_clamped_at_zero(self):
        result = charades_round_score("letter", 115)
        assert result.base == 25
        assert result.penalty == 25
        assert result.total == 0

    def test_timed_out_round_scores_nothing(self):
        result = charades_round_score("action", 20, timed_out=True)
        assert result.total == 0
        assert result.base == 0

    def test_full_time_counts_as_timed_out(self):
        assert charades_round_score("action", 120).total == 0

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            charades_round_score("mime", 10)


class TestCountedGames:
    def test_guess_the_word_all_correct_is_thirty(self):
        assert guess_the_word_score(5) == 30

    def test_guess_the_word_partial(self):
        assert guess_the_word_score(4) == 20
        assert guess_the_word_score(0) == 0

    def test_beer_pong(self):
        assert beer_pong_score(5) == 30
        assert beer_pong_score(3) == 15

    @pytest.mark.parametrize("count", [-1, 6])
    def test_out_of_range(self, count):
        with pytest.raises(ValueError):
            guess_the_word_score(count)
        with pytest.raises(ValueError):
            beer_pong_score(count)


class TestPenFight:
    def test_all_playing(self):
        assert pen_fight_scores(["playing"] * 3, ["playing"] * 3) == (0, 0)

    def test_knock_out_scores_for_opponent(self):
        team1, team2 = pen_fight_scores(
            ["knocked_out", "playing", "playing"],
            ["playing", "playing", "playing"],
        )
        assert (team1, team2) == (0, 20)

    def test_mixed_outcomes(self):
        team1, team2 = pen_fight_scores(
            ["winner", "ring_out", "knocked_out"],
            ["friendly_fire", "knocked_out", "knocked_out"],
        )
        # team1: +20 winner, -10 ring out, +40 from team2 knock outs
        assert team1 == 50
        # team2: -10 friendly fire, +20 from team1 knock out
        assert team2 == 10

    def test_negative_deltas_not_clamped(self):
        team1, _ = pen_fight_scores(
            ["ring_out", "friendly_fire", "ring_out"],
            ["playing", "playing", "playing"],
        )
        assert team1 == -30

    def test_requires_three_slots(self):
        with pytest.raises(ValueError):
            pen_fight_scores(["winner"], ["playing"] * 3)

    def test_unknown_outcome(self):
        with pytest.raises(ValueError):
            pen_fight_scores(["draw", "playing", "playing"], ["playing"] * 3)
