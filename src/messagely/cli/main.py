"""Messagely CLI — a thin command-line client for the HTTP API.

Usage:
    messagely register alice --first-name Alice --last-name A --phone 555  # → token
    messagely login alice                         # → token (prompts for password)
    export MESSAGELY_TOKEN=...
    messagely send bob "hi"                       # Send a message
    messagely show 1                              # Message detail
    messagely read 1                              # Mark message read
    messagely inbox                               # Messages you received
    messagely outbox                              # Messages you sent
    messagely users                               # Everyone's contact info
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx
import jwt

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("MESSAGELY_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Messagely backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(
        base_url=f"{_api_url()}/api/v1", headers=headers, timeout=30.0
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    tok = token or os.environ.get("MESSAGELY_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set MESSAGELY_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _username_from_token(token: str) -> str:
    """Read the username claim. The server verifies the signature, not us."""
    try:
        return jwt.decode(token, options={"verify_signature": False})["username"]
    except (jwt.InvalidTokenError, KeyError):
        click.secho("Error: token is malformed", fg="red", err=True)
        sys.exit(1)


def _check(r: httpx.Response) -> dict:
    """Return the JSON body, or print the API's error message and exit."""
    if r.is_success:
        return r.json()
    try:
        detail = r.json()
        message = detail.get("message") or detail.get("detail") or r.text
    except ValueError:
        message = r.text
    click.secho(f"Error ({r.status_code}): {message}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_mailbox(messages: list[dict], other: str):
    """Print one line per message. other is "from_user" or "to_user"."""
    if not messages:
        click.echo("No messages.")
        return
    for m in messages:
        status = "read" if m["read_at"] else "unread"
        color = "green" if m["read_at"] else "yellow"
        who = m[other]["username"]
        click.echo(f"#{m['id']:<5} {who:<20} ", nl=False)
        click.secho(f"{status:<7}", fg=color, nl=False)
        click.echo(f" {m['body'][:60]}")


token_option = click.option(
    "--token", envvar="MESSAGELY_TOKEN", help="Bearer token (or set MESSAGELY_TOKEN)"
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="messagely")
def main():
    """Messagely — send and read direct messages from the terminal."""


@main.command()
@click.argument("username")
@click.password_option()
@click.option("--first-name", required=True)
@click.option("--last-name", required=True)
@click.option("--phone", required=True)
def register(username: str, password: str, first_name: str, last_name: str, phone: str):
    """Create an account and print its token."""
    async def _impl():
        async with _client() as c:
            r = await c.post("/auth/register", json={
                "username": username,
                "password": password,
                "first_name": first_name,
                "last_name": last_name,
                "phone": phone,
            })
            click.echo(_check(r)["token"])

    _run(_impl())


@main.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True)
def login(username: str, password: str):
    """Log in and print a token."""
    async def _impl():
        async with _client() as c:
            r = await c.post("/auth/login", json={
                "username": username, "password": password,
            })
            click.echo(_check(r)["token"])

    _run(_impl())


@main.command()
@click.argument("to_username")
@click.argument("body")
@token_option
def send(to_username: str, body: str, token: Optional[str]):
    """Send BODY to TO_USERNAME."""
    tok = _require_token(token)

    async def _impl():
        async with _client(tok) as c:
            r = await c.post("/messages", json={"to_username": to_username, "body": body})
            msg = _check(r)["message"]
            click.secho(f"Message #{msg['id']} sent to {msg['to_username']}", fg="green")

    _run(_impl())


@main.command()
@click.argument("message_id", type=int)
@token_option
def show(message_id: int, token: Optional[str]):
    """Show a message with both parties' contact info."""
    tok = _require_token(token)

    async def _impl():
        async with _client(tok) as c:
            r = await c.get(f"/messages/{message_id}")
            click.echo(_pretty_json(_check(r)["message"]))

    _run(_impl())


@main.command()
@click.argument("message_id", type=int)
@token_option
def read(message_id: int, token: Optional[str]):
    """Mark a message you received as read."""
    tok = _require_token(token)

    async def _impl():
        async with _client(tok) as c:
            r = await c.post(f"/messages/{message_id}/read")
            msg = _check(r)["message"]
            click.secho(f"Message #{msg['id']} read at {msg['read_at']}", fg="green")

    _run(_impl())


@main.command()
@token_option
def inbox(token: Optional[str]):
    """List messages you received."""
    tok = _require_token(token)
    username = _username_from_token(tok)

    async def _impl():
        async with _client(tok) as c:
            r = await c.get(f"/users/{username}/to")
            _print_mailbox(_check(r)["messages"], "from_user")

    _run(_impl())


@main.command()
@token_option
def outbox(token: Optional[str]):
    """List messages you sent."""
    tok = _require_token(token)
    username = _username_from_token(tok)

    async def _impl():
        async with _client(tok) as c:
            r = await c.get(f"/users/{username}/from")
            _print_mailbox(_check(r)["messages"], "to_user")

    _run(_impl())


@main.command()
@token_option
def users(token: Optional[str]):
    """List every user's contact info."""
    tok = _require_token(token)

    async def _impl():
        async with _client(tok) as c:
            r = await c.get("/users")
            for u in _check(r)["users"]:
                click.echo(
                    f"{u['username']:<20} {u['first_name']} {u['last_name']:<20} {u['phone']}"
                )

    _run(_impl())


if __name__ == "__main__":
    main()
