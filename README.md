# gatorfeed

A small command-line RSS aggregator. Users register, add and follow RSS
feeds, and a collector loop fetches those feeds at a fixed interval and
stores their posts in an SQLite database, so that each user can browse the
latest posts from the feeds they follow.

It needs nothing beyond the Python standard library (Python 3.10 or later).

## Installation

```
pip install .
```

This installs the `gatorfeed` command. The same entry point can also be
started with `python -m gatorfeed.cli`.

To run the test suite:

```
pip install ".[test]"
pytest
```

## Configuration

Settings live in a JSON file named `.gatorconfig.json` in your home
directory. The file must exist before any command is run; create it by
hand first:

```json
{
  "db_url": "/home/alice/gator.db",
  "current_user_name": ""
}
```

- `db_url` is where the SQLite database lives: either a file path or a
  `sqlite://` URL (`sqlite:///home/alice/gator.db`). The tables are
  created on first use. Any other URL scheme is rejected. An empty
  `db_url` gives an in-memory database, which is lost when the command
  ends, so set it to a file.
- `current_user_name` is the user that commands act on. `login` and
  `register` fill it in and rewrite the file.

## Commands

Every command takes the form `gatorfeed <command> [arguments...]`.

| Command | Arguments | What it does |
| --- | --- | --- |
| `register` | `<name>` | Creates a user and makes it the current user |
| `login` | `<name>` | Switches to an existing user |
| `users` | | Lists all users and marks the current one |
| `reset` | | Deletes every user, and with them their feeds, follows and posts |
| `addfeed` | `<name> <url>` | Adds a feed owned by the current user and follows it |
| `feeds` | | Lists all feeds with the names of the users who added them |
| `follow` | `<url>` | Follows an existing feed |
| `following` | | Lists the feeds the current user follows |
| `unfollow` | `<url>` | Stops following a feed |
| `agg` | `<interval>` | Fetches feeds in a loop, one feed per tick |
| `browse` | `[limit]` | Shows the newest posts from followed feeds (2 by default) |

`addfeed`, `follow`, `following`, `unfollow` and `browse` need a current
user; log in or register first. User names and feed URLs are unique.

## Example session

```
gatorfeed register alice
gatorfeed addfeed "Example Blog" https://blog.example.com/index.xml
gatorfeed following
gatorfeed agg 1m
```

`agg` takes an interval made of numbers with units `ns`, `us` (or `µs`),
`ms`, `s`, `m` and `h`, such as `30s`, `1m`, `1.5h` or `1h30m`; the
interval must be positive. On every tick it picks the feed that was fetched
least recently (feeds never fetched come first), marks it fetched,
downloads it with the `User-Agent` header `gator`, and saves each item as a
post. HTML entities in titles and descriptions are unescaped. Items whose
link is already stored are skipped with a message. The loop runs until you
stop it with Ctrl+C or until a step fails.

In another terminal, while the collector runs:

```
gatorfeed browse 5
```

Each post is shown with its title, link, description and publication time,
newest first.

## Errors

When a command fails, for example because arguments are missing, the user
does not exist, a feed cannot be found, or the command name is unknown, the
program prints a message to standard error and exits with status 1.

## Limitations

- Storage is SQLite only; there is no support for a database server.
- An item's `pubDate` must be in the form `Mon, 02 Jan 2006 15:04:05 -0700`
  (a numeric time zone). A feed with an item in any other form, or a feed
  that cannot be downloaded or parsed, stops the `agg` loop with an error.
- `agg` fetches one feed per tick and only in the foreground; it does not
  run as a background service.
- Only RSS documents with a `channel` element are read; Atom feeds yield no
  posts.