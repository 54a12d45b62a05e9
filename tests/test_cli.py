"""
Tests for the command line: argument parsing and command dispatch.
"""

import asyncio

import pytest

import main
from config.settings import AppConfig, SupabaseConfig
from conftest import StoreError, item_row, outfit_row
from main import parse_args


class TestCLIArguments:
    """Argument parsing."""

    def test_defaults_list_all_items(self):
        args = parse_args([])
        assert args.category == "all"
        assert args.sort == "recent"
        assert args.search == ""
        assert args.with_items == []
        assert not args.outfits and not args.status

    def test_browse_options(self):
        args = parse_args(["-c", "tops", "--sort", "worn-most", "-s", "denim"])
        assert (args.category, args.sort, args.search) == ("tops", "worn-most", "denim")

    def test_unknown_category_is_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--category", "capes"])

    def test_outfit_with_items(self):
        args = parse_args(["--new-outfit", "Office", "--with", "a", "b", "--rating", "4"])
        assert args.new_outfit == "Office"
        assert args.with_items == ["a", "b"]
        assert args.rating == 4

    def test_rating_out_of_range(self):
        with pytest.raises(SystemExit):
            parse_args(["--new-outfit", "Office", "--rating", "9"])

    def test_item_actions(self):
        args = parse_args(["--delete-item", "abc"])
        assert args.delete_item == "abc"
        assert args.favorite is None


@pytest.fixture
def app_config():
    return AppConfig(
        supabase=SupabaseConfig(
            url="https://demo.supabase.co",
            key="anon-key",
            email="me@example.com",
            password="secret",
        )
    )


@pytest.fixture
def connected(db, monkeypatch):
    async def fake_client(settings):
        return db

    monkeypatch.setattr(main, "create_supabase_client", fake_client)
    return db


class TestRun:
    """Command dispatch against an in-memory project."""

    def test_missing_credentials(self):
        settings = AppConfig(supabase=SupabaseConfig(url=None, key=None))
        assert asyncio.run(main.run(parse_args([]), settings)) == 1

    def test_list_items(self, connected, app_config):
        connected.tables["clothing_items"] = [item_row("a", "Tee")]
        assert asyncio.run(main.run(parse_args(["-c", "tops"]), app_config)) == 0

    def test_toggle_favorite(self, connected, app_config):
        connected.tables["clothing_items"] = [item_row("a", "Tee")]
        assert asyncio.run(main.run(parse_args(["--favorite", "a"]), app_config)) == 0
        assert connected.tables["clothing_items"][0]["favorite"] is True

    def test_unknown_item(self, connected, app_config):
        assert asyncio.run(main.run(parse_args(["--wear", "nope"]), app_config)) == 1

    def test_new_outfit(self, connected, app_config):
        connected.tables["clothing_items"] = [
            item_row("a", "Tee"),
            item_row("b", "Jeans", category="bottoms"),
        ]
        args = parse_args(["--new-outfit", "Weekend", "--with", "a", "b"])
        assert asyncio.run(main.run(args, app_config)) == 0
        assert [r["item_id"] for r in connected.tables["outfit_items"]] == ["a", "b"]

    def test_edit_outfit_keeps_unchanged_fields(self, connected, app_config):
        connected.tables["clothing_items"] = [item_row("a", "Tee"), item_row("b", "Tank")]
        connected.tables["outfits"] = [outfit_row("o", "Office", occasion="work", rating=4)]
        connected.tables["outfit_items"] = [{"outfit_id": "o", "item_id": "a"}]

        args = parse_args(["--edit-outfit", "o", "--with", "b"])
        assert asyncio.run(main.run(args, app_config)) == 0

        stored = connected.tables["outfits"][0]
        assert stored["occasion"] == "work"
        assert stored["rating"] == 4
        assert [r["item_id"] for r in connected.tables["outfit_items"]] == ["b"]

    def test_status(self, connected, app_config):
        assert asyncio.run(main.run(parse_args(["--status"]), app_config)) == 0

    def test_status_reports_failure(self, connected, app_config):
        connected.storage.fail_all = True
        assert asyncio.run(main.run(parse_args(["--status"]), app_config)) == 1

    def test_item_action_after_failed_load(self, connected, app_config, capsys):
        connected.tables["clothing_items"] = [item_row("a", "Tee")]
        connected.failures[("clothing_items", "select")] = StoreError("JWT expired")

        assert asyncio.run(main.run(parse_args(["--favorite", "a"]), app_config)) == 1
        assert "Item not found" not in capsys.readouterr().out
        assert connected.writes("clothing_items") == []
