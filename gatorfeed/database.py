"""Storage for users, feeds, follows and posts in an SQLite database."""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, TypeVar

from .models import Feed, FeedFollowDetails, FeedWithOwner, Post, PostWithFeed, User

T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS feeds (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    last_fetched_at TEXT
);
CREATE TABLE IF NOT EXISTS feed_follows (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    feed_id TEXT NOT NULL REFERENCES feeds(id) ON DELETE CASCADE,
    UNIQUE (user_id, feed_id)
);
CREATE TABLE IF NOT EXISTS posts (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    title TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    description TEXT,
    published_at TEXT,
    feed_id TEXT NOT NULL REFERENCES feeds(id) ON DELETE CASCADE
);
"""

_FEED_COLUMNS = "feeds.id, feeds.created_at, feeds.updated_at, feeds.name, feeds.url, feeds.user_id, feeds.last_fetched_at"


class DatabaseError(Exception):
    """A query failed."""


class NotFoundError(DatabaseError):
    """A query that must return one row returned none."""


class DuplicateError(DatabaseError):
    """A row would break a uniqueness constraint."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_text(moment: datetime | None) -> str | None:
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _from_text(text: str | None) -> datetime | None:
    return None if text is None else datetime.fromisoformat(text)


def _user(row: sqlite3.Row) -> User:
    return User(
        id=uuid.UUID(row[0]),
        created_at=_from_text(row[1]),
        updated_at=_from_text(row[2]),
        name=row[3],
    )


def _feed(row: sqlite3.Row) -> Feed:
    return Feed(
        id=uuid.UUID(row[0]),
        created_at=_from_text(row[1]),
        updated_at=_from_text(row[2]),
        name=row[3],
        url=row[4],
        user_id=uuid.UUID(row[5]),
        last_fetched_at=_from_text(row[6]),
    )


def _post(row: sqlite3.Row) -> Post:
    return Post(
        id=uuid.UUID(row[0]),
        created_at=_from_text(row[1]),
        updated_at=_from_text(row[2]),
        title=row[3],
        url=row[4],
        description=row[5],
        published_at=_from_text(row[6]),
        feed_id=uuid.UUID(row[7]),
    )


class Queries:
    """The queries the aggregator runs, over one SQLite connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> Queries:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            with self._conn:
                yield self._conn
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" in str(exc):
                raise DuplicateError(str(exc)) from exc
            raise DatabaseError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc

    def _one(self, sql: str, params: tuple[Any, ...], convert: Callable[[sqlite3.Row], T]) -> T:
        with self._transaction() as conn:
            row = conn.execute(sql, params).fetchone()
        if row is None:
            raise NotFoundError("no rows in result set")
        return convert(row)

    def _many(self, sql: str, params: tuple[Any, ...], convert: Callable[[sqlite3.Row], T]) -> list[T]:
        with self._transaction() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [convert(row) for row in rows]

    def _exec(self, sql: str, params: tuple[Any, ...] = ()) -> None:
        with self._transaction() as conn:
            conn.execute(sql, params)

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        try:
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc

    # users

    def create_user(self, name: str) -> User:
        now = _to_text(_now())
        return self._one(
            "INSERT INTO users (id, created_at, updated_at, name) VALUES (?, ?, ?, ?) "
            "RETURNING id, created_at, updated_at, name",
            (str(uuid.uuid4()), now, now, name),
            _user,
        )

    def get_user(self, name: str) -> User:
        return self._one(
            "SELECT id, created_at, updated_at, name FROM users WHERE name = ? LIMIT 1",
            (name,),
            _user,
        )

    def get_users(self) -> list[str]:
        return self._many("SELECT name FROM users", (), lambda row: row[0])

    def reset_users(self) -> None:
        self._exec("DELETE FROM users")

    # feeds

    def create_feed(self, name: str, url: str, user_id: uuid.UUID) -> Feed:
        now = _to_text(_now())
        return self._one(
            "INSERT INTO feeds (id, created_at, updated_at, name, url, user_id) "
            "VALUES (?, ?, ?, ?, ?, ?) "
            "RETURNING id, created_at, updated_at, name, url, user_id, last_fetched_at",
            (str(uuid.uuid4()), now, now, name, url, str(user_id)),
            _feed,
        )

    def get_feed_by_url(self, url: str) -> Feed:
        return self._one(
            f"SELECT {_FEED_COLUMNS} FROM feeds WHERE url = ? LIMIT 1",
            (url,),
            _feed,
        )

    def get_feeds(self) -> list[FeedWithOwner]:
        return self._many(
            f"SELECT {_FEED_COLUMNS}, users.name FROM feeds "
            "INNER JOIN users ON feeds.user_id = users.id",
            (),
            lambda row: FeedWithOwner(feed=_feed(row), owner_name=row[7]),
        )

    def get_next_feed_to_fetch(self) -> Feed:
        """Return the feed fetched longest ago, never-fetched feeds first."""
        return self._one(
            f"SELECT {_FEED_COLUMNS} FROM feeds "
            "ORDER BY last_fetched_at IS NOT NULL, last_fetched_at LIMIT 1",
            (),
            _feed,
        )

    def mark_feed_fetched(self, feed_id: uuid.UUID) -> None:
        now = _to_text(_now())
        self._exec(
            "UPDATE feeds SET last_fetched_at = ?, updated_at = ? WHERE id = ?",
            (now, now, str(feed_id)),
        )

    # feed follows

    def create_feed_follow(self, user_id: uuid.UUID, feed_id: uuid.UUID) -> FeedFollowDetails:
        follow_id = str(uuid.uuid4())
        now = _to_text(_now())
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO feed_follows (id, created_at, updated_at, user_id, feed_id) "
                "VALUES (?, ?, ?, ?, ?)",
                (follow_id, now, now, str(user_id), str(feed_id)),
            )
            row = conn.execute(
                "SELECT feed_follows.id, feed_follows.created_at, feed_follows.updated_at, "
                "feed_follows.user_id, feed_follows.feed_id, feeds.name, users.name "
                "FROM feed_follows "
                "INNER JOIN feeds ON feed_follows.feed_id = feeds.id "
                "INNER JOIN users ON feed_follows.user_id = users.id "
                "WHERE feed_follows.id = ?",
                (follow_id,),
            ).fetchone()
        if row is None:
            raise NotFoundError("no rows in result set")
        return FeedFollowDetails(
            id=uuid.UUID(row[0]),
            created_at=_from_text(row[1]),
            updated_at=_from_text(row[2]),
            user_id=uuid.UUID(row[3]),
            feed_id=uuid.UUID(row[4]),
            feed_name=row[5],
            user_name=row[6],
        )

    def delete_feed_follows(self, user_id: uuid.UUID, feed_id: uuid.UUID) -> None:
        self._exec(
            "DELETE FROM feed_follows WHERE user_id = ? AND feed_id = ?",
            (str(user_id), str(feed_id)),
        )

    def get_feed_follows_for_user(self, user_id: uuid.UUID) -> list[Feed]:
        """Return the feeds the user follows."""
        return self._many(
            f"SELECT {_FEED_COLUMNS} FROM feed_follows "
            "INNER JOIN feeds ON feed_follows.feed_id = feeds.id "
            "WHERE feed_follows.user_id = ?",
            (str(user_id),),
            _feed,
        )

    # posts

    def create_post(
        self,
        title: str,
        url: str,
        description: str | None,
        published_at: datetime | None,
        feed_id: uuid.UUID,
    ) -> Post:
        now = _to_text(_now())
        return self._one(
            "INSERT INTO posts (id, created_at, updated_at, title, url, description, published_at, feed_id) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
            "RETURNING id, created_at, updated_at, title, url, description, published_at, feed_id",
            (str(uuid.uuid4()), now, now, title, url, description, _to_text(published_at), str(feed_id)),
            _post,
        )

    def get_posts(self, user_id: uuid.UUID, limit: int) -> list[PostWithFeed]:
        """Return the newest posts from feeds the user follows; undated posts first."""
        if limit < 0:
            raise DatabaseError("LIMIT must not be negative")
        return self._many(
            "SELECT posts.id, posts.created_at, posts.updated_at, posts.title, posts.url, "
            "posts.description, posts.published_at, posts.feed_id, feeds.name FROM posts "
            "INNER JOIN feed_follows ON feed_follows.feed_id = posts.feed_id "
            "INNER JOIN feeds ON feeds.id = posts.feed_id "
            "WHERE feed_follows.user_id = ? "
            "ORDER BY posts.published_at IS NULL DESC, posts.published_at DESC "
            "LIMIT ?",
            (str(user_id), int(limit)),
            lambda row: PostWithFeed(post=_post(row), feed_name=row[8]),
        )


def _database_path(url: str) -> str:
    if "://" in url:
        scheme, rest = url.split("://", 1)
        if scheme != "sqlite":
            raise DatabaseError(f"unsupported database URL scheme {scheme!r}")
        if rest.startswith("/"):
            rest = rest[1:]
        return rest or ":memory:"
    return url or ":memory:"


def connect(url: str) -> Queries:
    """Open the database at ``url`` (a path or ``sqlite://`` URL) and ensure its tables exist."""
    path = _database_path(url)
    try:
        connection = sqlite3.connect(path)
    except sqlite3.Error as exc:
        raise DatabaseError(str(exc)) from exc
    queries = Queries(connection)
    queries.create_schema()
    return queries