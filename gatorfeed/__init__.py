"""Command-line RSS feed aggregator that stores users, feeds, follows and posts in SQLite."""

__version__ = "0.1.0"