"""CLI smoke tests: seed a temporary database and drive commands with CliRunner."""

import asyncio

import pytest
from typer.testing import CliRunner

from adapters.cli import session as session_module
from adapters.cli.main import app
from adapters.cli.session import Session, load_session, save_session
from application.dto import LoginRequest
from factory import ServiceFactory
from infrastructure.config import Settings

runner = CliRunner()


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("JWT_SECRET", "cli-test-secret")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setattr(session_module, "_SESSION_FILE", tmp_path / "session.json")
    return tmp_path


def _log_in(email="user@gmail.com", password="user123") -> None:
    async def _token():
        factory = ServiceFactory(Settings.from_env())
        await factory.initialize()
        return await factory.create_authentication_service().login(
            LoginRequest(email=email, password=password)
        )

    token = asyncio.run(_token())
    save_session(Session(user_id=token.user.id, access_token=token.access_token, email=email))


def test_session_file_round_trip(tmp_path):
    path = tmp_path / "nested" / "session.json"
    save_session(Session(user_id=3, access_token="abc", email="a@b.c"), path)
    assert load_session(path) == Session(user_id=3, access_token="abc", email="a@b.c")


def test_corrupt_session_file_counts_as_logged_out(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_session(path) is None


def test_commands_require_login(env):
    result = runner.invoke(app, ["today"])
    assert result.exit_code == 1
    assert "Not logged in" in result.output


def test_seed_then_suggest_today_and_reroll(env):
    assert runner.invoke(app, ["init"]).exit_code == 0
    seeded = runner.invoke(app, ["seed"])
    assert seeded.exit_code == 0, seeded.output
    assert "Seed complete" in seeded.output

    _log_in()

    whoami = runner.invoke(app, ["whoami"])
    assert "user@gmail.com" in whoami.output

    assert "No suggestion for today" in runner.invoke(app, ["today"]).output

    suggested = runner.invoke(app, ["suggest"])
    assert suggested.exit_code == 0, suggested.output
    assert "Meals for" in suggested.output

    rerolled = runner.invoke(app, ["reroll", "lunch"])
    assert rerolled.exit_code == 0, rerolled.output

    assert runner.invoke(app, ["reroll", "brunch"]).exit_code != 0


def test_menus_and_preferences(env):
    runner.invoke(app, ["seed"])
    _log_in()

    menus = runner.invoke(app, ["menus", "--meal-type", "breakfast", "--limit", "5"])
    assert menus.exit_code == 0, menus.output
    assert "10 total" in menus.output

    prefs = runner.invoke(app, ["preferences", "--exclude", "dinner", "--budget-max", "100"])
    assert prefs.exit_code == 0, prefs.output
    assert "dinner" in prefs.output

    inverted = runner.invoke(app, ["preferences", "--budget-min", "500"])
    assert inverted.exit_code == 1
    assert "Error" in inverted.output
