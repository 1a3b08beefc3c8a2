import pytest

from party_models import AUCTION_COMPLETED, AUCTION_PENDING, DEFAULT_BUDGET, DEFAULT_TEAM_COLOR


class TestEntityTables:
    def test_create_assigns_id_and_timestamp(self, store):
        player = store.players.create(name="  Asha  ")
        assert player.id
        assert player.name == "Asha"
        assert player.created_at.tzinfo is not None
        assert player.team_id is None and player.sold_price is None
        assert not player.is_captain

    def test_ids_are_unique(self, store):
        ids = {store.players.create(name=f"P{i}").id for i in range(20)}
        assert len(ids) == 20

    def test_list_keeps_creation_order(self, store):
        for name in ("Cara", "Abe", "Bo"):
            store.players.create(name=name)
        assert [p.name for p in store.players.list()] == ["Cara", "Abe", "Bo"]

    def test_blank_name_rejected(self, store):
        with pytest.raises(ValueError):
            store.players.create(name="   ")
        assert len(store.players) == 0

    def test_team_defaults(self, store):
        team = store.teams.create(name="Red", budget=0)
        assert team.budget == DEFAULT_BUDGET
        assert team.color == DEFAULT_TEAM_COLOR
        assert team.score == 0
        assert team.beer_pong_played_player_ids == []

    def test_partial_update_only_touches_given_fields(self, store):
        team = store.teams.create(name="Red", color="#ff0000", budget=500)
        store.teams.update(team.id, {"score": 40})
        assert team.score == 40
        assert team.budget == 500
        assert team.color == "#ff0000"

    def test_update_missing_returns_none(self, store):
        assert store.players.update("nope", {"name": "x"}) is None

    def test_update_rejects_unknown_and_read_only_fields(self, store):
        player = store.players.create(name="Asha")
        with pytest.raises(ValueError):
            store.players.update(player.id, {"budget": 10})
        with pytest.raises(ValueError):
            store.players.update(player.id, {"id": "other"})

    def test_update_rejects_null_for_required_fields(self, store):
        team = store.teams.create(name="Red", budget=500)
        for field in ("budget", "score", "color", "name", "beer_pong_rounds"):
            with pytest.raises(ValueError):
                store.teams.update(team.id, {field: None})
        assert team.budget == 500
        assert team.score == 0
        assert team.name == "Red"

    def test_nullable_fields_can_be_cleared(self, store):
        team = store.teams.create(name="Red")
        player = store.players.create(name="Asha", photo="asha.png")
        store.players.update(player.id, {"team_id": team.id, "sold_price": 120})
        store.players.update(player.id, {"team_id": None, "sold_price": None, "photo": None})
        assert player.in_unsold_pool
        assert player.photo is None
        with pytest.raises(ValueError):
            store.players.update(player.id, {"is_captain": None})

    def test_delete_is_idempotent(self, store):
        player = store.players.create(name="Asha")
        assert store.players.delete(player.id) is player
        assert store.players.delete(player.id) is None

    def test_delete_all(self, store):
        store.teams.create(name="Red")
        store.teams.create(name="Blue")
        store.teams.delete_all()
        assert store.teams.list() == []


class TestTeamPlayedList:
    def test_add_player_id_appends(self, store):
        team = store.teams.create(name="Red")
        store.teams.update(team.id, {"beer_pong_add_player_id": "p1"})
        store.teams.update(team.id, {"beer_pong_add_player_id": "p2", "score": 5})
        assert team.beer_pong_played_player_ids == ["p1", "p2"]
        assert team.score == 5


class TestAlbums:
    def test_songs_get_ids(self, store):
        album = store.albums.create(name="Hits", songs=[{"title": "One", "streams": 3}, {"title": "Two"}])
        assert [s.title for s in album.songs] == ["One", "Two"]
        assert all(s.id for s in album.songs)
        assert album.songs[1].streams == 0
        assert not album.played
        assert not album.playable

    def test_replace_songs(self, store):
        album = store.albums.create(name="Hits")
        store.albums.update(album.id, {"songs": [{"title": t, "streams": i} for i, t in enumerate("ABC")]})
        assert album.playable


class TestSettings:
    def test_defaults_created_lazily(self, store):
        settings = store.get_settings()
        assert settings.base_price == 100
        assert settings.bid_increment == 10
        assert settings.auction_status == AUCTION_PENDING
        assert settings.current_player_index == 0
        assert store.get_settings() is settings

    def test_update_and_reset(self, store):
        store.update_settings({"base_price": 200, "auction_status": AUCTION_COMPLETED})
        assert store.get_settings().base_price == 200
        store.reset_settings()
        assert store.get_settings().base_price == 100
        assert store.get_settings().auction_status == AUCTION_PENDING

    def test_invalid_status(self, store):
        with pytest.raises(ValueError):
            store.update_settings({"auction_status": "paused"})

    def test_null_setting_rejected(self, store):
        with pytest.raises(ValueError):
            store.update_settings({"base_price": None})
        assert store.get_settings().base_price == 100


class TestTransaction:
    def test_rolls_back_every_collection(self, store):
        team = store.teams.create(name="Red")
        player = store.players.create(name="Asha")

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.players.update(player.id, {"team_id": team.id, "sold_price": 150})
                store.teams.update(team.id, {"budget": 850})
                store.update_settings({"current_player_index": 3})
                raise RuntimeError("write failed")

        assert store.players.get(player.id).team_id is None
        assert store.players.get(player.id).sold_price is None
        assert store.teams.get(team.id).budget == 1000
        assert store.get_settings().current_player_index == 0

    def test_rolls_back_appended_played_ids(self, store):
        team = store.teams.create(name="Red")
        store.teams.update(team.id, {"beer_pong_add_player_id": "p1"})

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.teams.update(team.id, {"beer_pong_add_player_id": "p2"})
                raise RuntimeError("write failed")

        assert store.teams.get(team.id).beer_pong_played_player_ids == ["p1"]

    def test_snapshot_shares_photo_strings(self, store):
        photo = "data:image/png;base64," + "A" * 10_000
        player = store.players.create(name="Asha", photo=photo)

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.players.update(player.id, {"sold_price": 10})
                raise RuntimeError("write failed")

        restored = store.players.get(player.id)
        assert restored.sold_price is None
        assert restored.photo is photo

    def test_commits_on_success(self, store):
        team = store.teams.create(name="Red")
        with store.transaction():
            store.teams.update(team.id, {"budget": 900})
        assert store.teams.get(team.id).budget == 900
