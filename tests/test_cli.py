"""Tests for the ``reelhub`` command line entry point."""

from __future__ import annotations

import asyncio

import pytest

import reelhub.__main__ as cli
from app.config import Settings
from app.database import Database
from app.services.identity import IdentityResolver
from app.services.users import UserStore


def build_settings(database_url: str) -> Settings:
    return Settings(  # type: ignore[arg-type]
        _env_file=None, DATABASE_URL=database_url, AUTH_SECRET="cli-secret"
    )


def test_create_user_prints_usable_token(
    database_url: str, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    config = build_settings(database_url)
    monkeypatch.setattr(cli, "settings", config)

    cli.main(["create-user", "marla", "--display-name", "Marla Singer"])

    lines = dict(
        line.split("=", 1) for line in capsys.readouterr().out.splitlines()
    )
    assert lines["user_id"] == "1"
    assert lines["username"] == "marla"

    async def resolve() -> tuple[int | None, str | None]:
        database = Database(database_url)
        try:
            users = UserStore(database.session_factory)
            user = await users.get(1)
            resolved = await IdentityResolver(config, users).resolve(
                f"Bearer {lines['token']}"
            )
        finally:
            await database.dispose()
        return resolved, user.display_name if user else None

    assert asyncio.run(resolve()) == (1, "Marla Singer")


def test_provisioning_same_username_reuses_account(database_url: str) -> None:
    config = build_settings(database_url)

    first, _ = asyncio.run(cli.provision_user(config, "tyler"))
    second, token = asyncio.run(cli.provision_user(config, "tyler", "Ignored"))

    assert second.id == first.id
    assert second.display_name == "tyler"
    resolver = IdentityResolver(config, UserStore(None))  # type: ignore[arg-type]
    assert resolver.decode_user_id(token) == first.id
