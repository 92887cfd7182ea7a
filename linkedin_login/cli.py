from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from linkedin_login import __version__
from linkedin_login.exceptions import LinkedInLoginError
from linkedin_login.services.browser import BrowserSession
from linkedin_login.services.login import Credentials, LoginOptions, get_orchestrator
from linkedin_login.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

HELP_TEXT = """
Available commands:
  status    - Show bot status
  exit      - Stop the bot and exit
  quit      - Alias for exit
  help      - Show this help message
"""


def load_users(path: Path) -> list[dict]:
    """Read ``[{"username": ..., "password": ...}, ...]`` from a JSON file."""
    if not path.exists():
        logger.info(f"No users file at {path}. Using environment variables.")
        return []
    try:
        users = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"Error loading {path}: {e}")
        return []
    if not isinstance(users, list):
        logger.warning(f"{path} does not contain a list of users.")
        return []
    return [u for u in users if isinstance(u, dict) and u.get("username") and u.get("password")]


def select_user(users: list[dict], ask=input) -> Optional[Credentials]:
    """Pick a user, prompting when there is more than one. None means use env vars."""
    if not users:
        return None
    if len(users) == 1:
        logger.info(f"Single user found: {users[0]['username']}")
        return Credentials(identity=users[0]["username"], secret=users[0]["password"])

    print("\nSelect a user to login:")
    for index, user in enumerate(users, start=1):
        print(f"{index}. {user['username']}")
    print(f"{len(users) + 1}. Use Environment Variables (.env)")

    while True:
        answer = ask("\nEnter number: ").strip()
        if answer.isdigit() and 1 <= int(answer) <= len(users) + 1:
            break
        print("Invalid selection. Try again.")

    choice = int(answer) - 1
    if choice == len(users):
        logger.info("Selected: Environment Variables")
        return None
    user = users[choice]
    logger.info(f"Selected user: {user['username']}")
    return Credentials(identity=user["username"], secret=user["password"])


def print_status(session: Optional[BrowserSession]) -> None:
    if session is not None and session.browser.is_connected():
        print("Status: 🟢 Connected")
        pages = len(session.context.pages) if session.context is not None else 0
        print(f"Open pages: {pages}")
    else:
        print("Status: 🔴 Disconnected")


def _start_stdin_reader(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
    # Daemon thread so a pending input() never blocks interpreter shutdown.
    def reader():
        for line in sys.stdin:
            loop.call_soon_threadsafe(queue.put_nowait, line)
        loop.call_soon_threadsafe(queue.put_nowait, None)

    threading.Thread(target=reader, daemon=True).start()


async def repl(session: BrowserSession) -> None:
    queue: asyncio.Queue = asyncio.Queue()
    _start_stdin_reader(asyncio.get_running_loop(), queue)
    print("Interactive CLI started. Type 'help' for commands.")
    while True:
        print("linkedin-bot> ", end="", flush=True)
        line = await queue.get()
        if line is None:
            print("\nCLI session ended.")
            return
        command = line.strip()
        if command == "help":
            print(HELP_TEXT)
        elif command == "status":
            print_status(session)
        elif command in ("exit", "quit"):
            print("Exiting...")
            return
        elif command:
            print(f"Unknown command: '{command}'. Type 'help' for available commands.")


async def run(args: argparse.Namespace) -> int:
    credentials = select_user(load_users(Path(args.users_file)))
    headless = not args.visible
    print(f"Starting bot in {'Headless' if headless else 'Visible'} Mode...")

    orchestrator = get_orchestrator()
    session: Optional[BrowserSession] = None
    try:
        session = await orchestrator.login(
            LoginOptions(headless=headless, disable_fallback=args.no_fallback),
            credentials,
        )
        print("Login successful.")
        await repl(session)
        return 0
    except LinkedInLoginError as e:
        print(f"Error occurred: {e}", file=sys.stderr)
        return 1
    finally:
        if session is not None:
            print("Closing browser...")
            await session.close()
            print("Browser closed.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="linkedin-login", description="LinkedIn Automation CLI")
    parser.add_argument("--visible", action="store_true", help="Run in visible mode (default is headless)")
    parser.add_argument("--no-fallback", action="store_true", help="Do not open a visible browser on checkpoints")
    parser.add_argument("--users-file", default="users.json", help="JSON list of {username, password}")
    parser.add_argument("-v", "--version", action="version", version=f"v{__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        # asyncio.run already cancelled the login task, which closed its browser.
        print("\nReceived stop signal.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
