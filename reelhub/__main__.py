"""Module executed when running ``python -m reelhub``."""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

import uvicorn

from app.config import Settings, settings
from app.database import Database
from app.models import UserView
from app.services.identity import IdentityResolver
from app.services.users import UserStore


async def provision_user(
    config: Settings, username: str, display_name: str | None = None
) -> tuple[UserView, str]:
    """Create (or reuse) an account and sign a bearer token for it."""

    database = Database(config.database_url)
    try:
        await database.create_all()
        users = UserStore(database.session_factory)
        user = await users.create(username, display_name)
        token = IdentityResolver(config, users).create_access_token(user.id)
    finally:
        await database.dispose()
    return user, token


def serve() -> None:
    """Serve the API with uvicorn using the configured host and port."""

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
        log_level="debug" if settings.environment == "development" else "info",
    )


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="reelhub", description="Run the ReelHub API or manage its accounts."
    )
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("serve", help="Start the HTTP server (default)")
    create_user = commands.add_parser(
        "create-user", help="Create a user and print a bearer token for it"
    )
    create_user.add_argument("username")
    create_user.add_argument(
        "--display-name", default=None, help="Name shown next to the user's reviews"
    )
    args = parser.parse_args(argv)

    if args.command == "create-user":
        user, token = asyncio.run(
            provision_user(settings, args.username, args.display_name)
        )
        print(f"user_id={user.id}")
        print(f"username={user.username}")
        print(f"token={token}")
        return

    serve()


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
