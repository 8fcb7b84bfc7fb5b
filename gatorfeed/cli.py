"""Command-line entry point and command dispatch."""

from __future__ import annotations

import sys
from collections.abc import Callable, Sequence

from .config import read
from .database import DatabaseError, connect
from .handlers import (
    Command,
    CommandError,
    State,
    handler_add_feed,
    handler_agg,
    handler_browse,
    handler_feeds,
    handler_follow,
    handler_following,
    handler_login,
    handler_register,
    handler_reset,
    handler_unfollow,
    handler_users,
)
from .models import User

Handler = Callable[[State, Command], None]


class Commands:
    """A registry of named command handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def register(self, name: str, handler: Handler) -> None:
        self._handlers[name] = handler

    def run(self, state: State, command: Command) -> None:
        handler = self._handlers.get(command.name)
        if handler is None:
            raise CommandError(f"unknown command '{command.name}'")
        handler(state, command)


def logged_in(handler: Callable[[State, Command, User], None]) -> Handler:
    """Wrap a handler so it receives the current user."""

    def wrapped(state: State, command: Command) -> None:
        try:
            user = state.db.get_user(state.cfg.current_user_name)
        except DatabaseError as exc:
            raise CommandError(f"Error finding current user: {exc}") from exc
        handler(state, command, user)

    return wrapped


def build_commands() -> Commands:
    commands = Commands()
    commands.register("login", handler_login)
    commands.register("register", handler_register)
    commands.register("reset", handler_reset)
    commands.register("users", handler_users)
    commands.register("agg", handler_agg)
    commands.register("addfeed", logged_in(handler_add_feed))
    commands.register("feeds", handler_feeds)
    commands.register("follow", logged_in(handler_follow))
    commands.register("following", logged_in(handler_following))
    commands.register("unfollow", logged_in(handler_unfollow))
    commands.register("browse", logged_in(handler_browse))
    return commands


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        cfg = read()
    except (OSError, ValueError) as exc:
        print(f"Error reading config: {exc}", file=sys.stderr)
        return 1
    try:
        db = connect(cfg.db_url)
    except DatabaseError as exc:
        print(f"Error connecting to database: {exc}", file=sys.stderr)
        return 1
    with db:
        if not args:
            print("Error: Command name is required", file=sys.stderr)
            return 1
        state = State(db=db, cfg=cfg, out=sys.stdout)
        try:
            build_commands().run(state, Command(args[0], tuple(args[1:])))
        except (CommandError, DatabaseError, OSError) as exc:
            print(exc, file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())