import dataclasses
import uuid
from datetime import datetime, timezone

import pytest

from gatorfeed.models import (
    Feed,
    FeedFollow,
    FeedFollowDetails,
    FeedWithOwner,
    Post,
    PostWithFeed,
    User,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _feed(**changes):
    base = Feed(
        id=uuid.UUID(int=1),
        created_at=NOW,
        updated_at=NOW,
        name="blog",
        url="https://example.com/rss",
        user_id=uuid.UUID(int=2),
    )
    return dataclasses.replace(base, **changes)


def test_feed_last_fetched_defaults_to_none():
    assert _feed().last_fetched_at is None


def test_user_is_frozen():
    user = User(uuid.UUID(int=3), NOW, NOW, "alice")
    with pytest.raises(dataclasses.FrozenInstanceError):
        user.name = "bob"
    assert user.name == "alice"
    assert user.id == uuid.UUID(int=3)


def test_equal_records_compare_equal_and_hash_alike():
    a = _feed()
    b = _feed()
    assert a == b
    assert len({a, b}) == 1


def test_replace_changes_only_given_field():
    a = _feed()
    b = dataclasses.replace(a, last_fetched_at=NOW)
    assert b.last_fetched_at == NOW
    assert b.url == a.url
    assert a != b


def test_feed_with_owner_wraps_feed():
    wrapped = FeedWithOwner(feed=_feed(), owner_name="alice")
    assert wrapped.feed.name == "blog"
    assert wrapped.owner_name == "alice"


def test_post_with_feed_and_details():
    post = Post(uuid.UUID(int=4), NOW, NOW, "t", "https://example.com/p", None, None, uuid.UUID(int=1))
    pwf = PostWithFeed(post=post, feed_name="blog")
    assert pwf.post.description is None
    assert pwf.feed_name == "blog"
    follow = FeedFollow(uuid.UUID(int=5), NOW, NOW, uuid.UUID(int=2), uuid.UUID(int=1))
    details = FeedFollowDetails(
        follow.id, follow.created_at, follow.updated_at, follow.user_id, follow.feed_id, "blog", "alice"
    )
    assert (details.user_id, details.feed_id) == (follow.user_id, follow.feed_id)