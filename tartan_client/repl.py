#!/usr/bin/env python3
"""Interactive client for playing or designing on a Tartan game server."""

from __future__ import annotations

import argparse
import logging
import threading
from dataclasses import replace
from pathlib import Path

from .client import TartanClient
from .config import ClientConfig
from .connection import ConnectionFailure
from .events import END_OF_SESSION, EventQueue
from .mailbox import MailboxBusyError
from .protocol import ProtocolError


HELP_TEXT = """
Commands:
  login <user_id> <password>
  adduser <user_id> <password>
  start                    # start a game
  upload <map-file>        # designer only
  quit / exit              # end the game and disconnect
  help
""".strip()

COMMAND_ARITY = {
    "login": 2,
    "adduser": 2,
    "start": 0,
    "upload": 1,
    "quit": 0,
    "exit": 0,
    "help": 0,
}


def parse_command(line: str) -> tuple[str, list[str]]:
    parts = line.split()
    if not parts:
        raise ValueError("Empty command")
    cmd, args = parts[0].lower(), parts[1:]
    if cmd not in COMMAND_ARITY:
        raise ValueError(f"Unknown command: {cmd}. Type 'help'.")
    if len(args) != COMMAND_ARITY[cmd]:
        raise ValueError(f"'{cmd}' takes {COMMAND_ARITY[cmd]} argument(s)")
    return cmd, args


def print_events(events: EventQueue, session_over: threading.Event) -> None:
    while True:
        entry = events.consume()
        if entry is None:
            return
        if entry.text == END_OF_SESSION:
            print("The game is over. Press Enter to leave.")
            session_over.set()
            return
        print(entry.text)


def run_command(client: TartanClient, cmd: str, args: list[str], timeout: float) -> str:
    if cmd == "login":
        return client.login(args[0], args[1], timeout)
    if cmd == "adduser":
        return client.add_user(args[0], args[1], timeout)
    if cmd == "start":
        return client.start_game(timeout)
    if cmd == "upload":
        return client.upload_map_design(Path(args[0]).read_text(encoding="utf-8"), timeout)
    raise ValueError(f"Unhandled command: {cmd}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Tartan game client")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=None, help="defaults to the player or designer port")
    parser.add_argument("--designer", action="store_true", help="connect to the map designer port")
    parser.add_argument("--timeout", type=float, default=10.0, help="seconds to wait for a response")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = ClientConfig(server_address=args.host)
    if args.port is not None:
        port_field = "designer_port" if args.designer else "player_port"
        config = replace(config, **{port_field: args.port})

    events = EventQueue()
    client = TartanClient(config, events, designer=args.designer)
    client.start()
    if not client.wait_until_connected(config.connect_timeout):
        print(f"Could not connect to {config.server_address}:{config.port_for(args.designer)}")
        client.close()
        return

    session_over = threading.Event()
    printer = threading.Thread(target=print_events, args=(events, session_over), name="tartan-events", daemon=True)
    printer.start()

    print("Connected.")
    print(HELP_TEXT)

    try:
        while not session_over.is_set():
            try:
                line = input("tartan> ").strip()
            except EOFError:
                print()
                break
            if not line or session_over.is_set():
                continue

            try:
                cmd, cmd_args = parse_command(line)
                if cmd == "help":
                    print(HELP_TEXT)
                elif cmd in {"quit", "exit"}:
                    print(client.quit_game(args.timeout))
                    break
                else:
                    print(run_command(client, cmd, cmd_args, args.timeout))
            except (ValueError, OSError, ProtocolError, ConnectionFailure, MailboxBusyError) as exc:
                print(f"error: {exc}")
    finally:
        client.close()
        events.close()
        printer.join(timeout=1.0)


if __name__ == "__main__":
    main()
