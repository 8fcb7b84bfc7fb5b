"""The commands a user can run against the aggregator."""

from __future__ import annotations

import logging
import sys
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TextIO

from .config import Config
from .database import DatabaseError, DuplicateError, Queries
from .durations import format_duration, parse_duration
from .models import User
from .rss import FeedFetchError, RSSFeed, RSSItem, fetch_feed

log = logging.getLogger(__name__)

PUB_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S %z"
_ZERO_TIME = "0001-01-01 00:00:00 +0000 UTC"


class CommandError(Exception):
    """A command failed; the message is meant for the user."""


@dataclass(frozen=True)
class Command:
    name: str
    args: tuple[str, ...] = ()


@dataclass
class State:
    db: Queries
    cfg: Config
    out: TextIO = field(default_factory=lambda: sys.stdout)

    def say(self, text: str = "", end: str = "\n") -> None:
        print(text, end=end, file=self.out)


def handler_login(state: State, command: Command) -> None:
    if not command.args:
        raise CommandError("Username is required for login")
    try:
        user = state.db.get_user(command.args[0])
    except DatabaseError as exc:
        raise CommandError("No such user in database. Please register.") from exc
    state.cfg.set_user(user.name)
    state.say(f"User has been set as {command.args[0]}.", end="")


def handler_register(state: State, command: Command) -> None:
    if not command.args:
        raise CommandError("Name is required to register.")
    try:
        user = state.db.create_user(command.args[0])
    except DatabaseError as exc:
        raise CommandError(f"Error creating user: {exc}") from exc
    try:
        state.cfg.set_user(user.name)
    except OSError as exc:
        raise CommandError(f"Could not set user: {exc}") from exc
    state.say(f"User '{user.name}' successfully registered and set as current user!", end="")


def handler_reset(state: State, command: Command) -> None:
    try:
        state.db.reset_users()
    except DatabaseError as exc:
        raise CommandError(f"Error resetting users table: {exc}") from exc
    state.say("Users table successfully resetted.")


def handler_users(state: State, command: Command) -> None:
    try:
        names = state.db.get_users()
    except DatabaseError as exc:
        raise CommandError(f"Error fetching all users: {exc}") from exc
    for name in names:
        suffix = " (current)" if name == state.cfg.current_user_name else ""
        state.say(f"* {name}{suffix}")


def handler_agg(state: State, command: Command) -> None:
    """Scrape the next feed, then again after every interval, until an error occurs."""
    if len(command.args) != 1:
        raise CommandError("Usage: gatorfeed agg <time>")
    try:
        interval = parse_duration(command.args[0])
    except ValueError as exc:
        raise CommandError(f"Error parsing time with '{command.args[0]}': {exc}") from exc
    if interval <= 0:
        raise CommandError("time between requests must be positive")
    state.say(f"Collecting feeds every {format_duration(interval)}")
    next_run = time.monotonic()
    while True:
        try:
            scrape_feeds(state, fetch_feed)
        except CommandError as exc:
            raise CommandError(f"error scraping feed: {exc}") from exc
        next_run += interval
        time.sleep(max(0.0, next_run - time.monotonic()))


def scrape_feeds(state: State, fetch: Callable[[str], RSSFeed]) -> None:
    """Fetch the feed due next and store its posts."""
    try:
        feed = state.db.get_next_feed_to_fetch()
    except DatabaseError as exc:
        raise CommandError(f"Error fetching next feed: {exc}") from exc
    try:
        state.db.mark_feed_fetched(feed.id)
    except DatabaseError as exc:
        raise CommandError(f"Error marking feed as fetched: {exc}") from exc
    try:
        rss = fetch(feed.url)
    except FeedFetchError as exc:
        raise CommandError(f"Error fetching feed via url '{feed.url}': {exc}") from exc
    for item in rss.items:
        state.say(f"Found post: {item.title}")
        try:
            create_post_from_feed(state, item, feed.id)
        except DuplicateError:
            state.say("Post already created. Moving on...")
    log.info("Feed %s collected, %d posts found", feed.name, len(rss.items))


def parse_pub_date(text: str) -> datetime:
    """Parse an RFC 1123 date with a numeric zone; raise ``ValueError`` otherwise."""
    return datetime.strptime(text, PUB_DATE_FORMAT)


def create_post_from_feed(state: State, item: RSSItem, feed_id: uuid.UUID) -> None:
    """Store one item as a post; a duplicate URL raises ``DuplicateError``."""
    try:
        published = parse_pub_date(item.pub_date)
    except ValueError as exc:
        raise CommandError(f"Error parsing published time: {exc}") from exc
    try:
        post = state.db.create_post(item.title, item.link, item.description, published, feed_id)
    except DuplicateError:
        raise
    except DatabaseError as exc:
        raise CommandError(f"Error creating post: {exc}") from exc
    state.say(f"Post successfully created: {post.title}")


def handler_add_feed(state: State, command: Command, user: User) -> None:
    if len(command.args) < 2:
        raise CommandError("URL and name of feed is required")
    name, url = command.args[0], command.args[1]
    try:
        feed = state.db.create_feed(name, url, user.id)
    except DatabaseError as exc:
        raise CommandError(f"Error creating feed: {exc}") from exc
    state.say("Successfully created feed:")
    try:
        follow = state.db.create_feed_follow(user.id, feed.id)
    except DatabaseError as exc:
        raise CommandError(f"Error creating feed follow: {exc}") from exc
    state.say("Successfully created feed follow!")
    state.say(f"Feed name: {follow.feed_name}")
    state.say(f"Feed URL: {url}")
    state.say(f"User name: {follow.user_name}")


def handler_feeds(state: State, command: Command) -> None:
    try:
        feeds = state.db.get_feeds()
    except DatabaseError as exc:
        raise CommandError(f"Error fetching all feeds: {exc}") from exc
    for entry in feeds:
        state.say("----------")
        state.say(f"Feed name: {entry.feed.name}")
        state.say(f"Feed URL: {entry.feed.url}")
        state.say(f"Feed User Name: {entry.owner_name}")
        state.say("----------")


def handler_follow(state: State, command: Command, user: User) -> None:
    if len(command.args) != 1:
        raise CommandError("Usage: gatorfeed follow <url>")
    url = command.args[0]
    try:
        feed = state.db.get_feed_by_url(url)
    except DatabaseError as exc:
        raise CommandError(f"Error finding feed with url '{url}': {exc}") from exc
    try:
        follow = state.db.create_feed_follow(user.id, feed.id)
    except DatabaseError as exc:
        raise CommandError(f"Error creating feed follow: {exc}") from exc
    state.say("Successfully followed feed!")
    state.say(f"Feed name: {follow.feed_name}")
    state.say(f"User name: {follow.user_name}")


def handler_following(state: State, command: Command, user: User) -> None:
    if command.args:
        raise CommandError("Usage: gatorfeed following")
    try:
        feeds = state.db.get_feed_follows_for_user(user.id)
    except DatabaseError as exc:
        raise CommandError(f"Error getting user feeds: {exc}") from exc
    state.say(f"Current feeds for user '{user.name}':")
    for index, feed in enumerate(feeds):
        state.say(f"{index}, Feed Name: {feed.name}")


def handler_unfollow(state: State, command: Command, user: User) -> None:
    if len(command.args) != 1:
        raise CommandError("Usage: gatorfeed unfollow <feed url>")
    try:
        feed = state.db.get_feed_by_url(command.args[0])
    except DatabaseError as exc:
        raise CommandError(f"Error fetching feed via url name: {exc}") from exc
    try:
        state.db.delete_feed_follows(user.id, feed.id)
    except DatabaseError as exc:
        raise CommandError(f"Error deleting feed follow: {exc}") from exc
    state.say(f"{feed.name} unfollowed successfully!")


def _format_time(moment: datetime | None) -> str:
    if moment is None:
        return _ZERO_TIME
    return moment.strftime("%Y-%m-%d %H:%M:%S %z %Z").rstrip()


def handler_browse(state: State, command: Command, user: User) -> None:
    if not command.args:
        limit = 2
    elif len(command.args) == 1:
        try:
            limit = int(command.args[0])
        except ValueError as exc:
            raise CommandError(f"Error parsing limit: {exc}") from exc
    else:
        raise CommandError("Usage: gatorfeed browse <optional_limit>")
    try:
        posts = state.db.get_posts(user.id, limit)
    except DatabaseError as exc:
        raise CommandError(f"Error fetching posts: {exc}") from exc
    state.say("Here are all your saved posts:")
    for entry in posts:
        post = entry.post
        state.say(f"Title: {post.title}")
        state.say(f"URL: {post.url}")
        state.say(f"Description: {post.description or ''}")
        state.say(f"Published at: {_format_time(post.published_at)}")
        state.say("------------------------------")