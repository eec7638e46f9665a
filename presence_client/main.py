#!/usr/bin/env python3
"""
Headless Presence Client
Connects as a wallet, announces a position and logs the players it sees.
"""

import argparse
import logging
import sys
import time

from .config import DEFAULT_LOCATION, WS_URL
from .controller import ViewController
from .game_logic import PresenceOnlyGame
from .game_state import ClientState
from .network import NetworkClient

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Headless presence client")
    parser.add_argument("wallet", help="Wallet address to connect as")
    parser.add_argument("--name", "-n", default="Wanderer", help="Character name")
    parser.add_argument("--x", type=int, default=0)
    parser.add_argument("--y", type=int, default=0)
    parser.add_argument("--location", "-l", default=DEFAULT_LOCATION)
    parser.add_argument("--url", default=WS_URL, help="Server base URL")
    parser.add_argument(
        "--walk", type=int, default=0,
        help="Step one tile east this many times, one step per second",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    state = ClientState(identity=args.wallet)
    game = PresenceOnlyGame()
    network = NetworkClient(state, base_url=args.url)

    def render(showing_skill_tree: bool) -> None:
        players = state.get_players_snapshot()
        summary = ", ".join(f"{p.wallet}@{p.location}({p.x},{p.y})" for p in players) or "nobody"
        logger.info(f"{len(players)} player(s) online: {summary}")

    controller = ViewController(state, game, network, render=render)

    if not controller.create_character(args.name, "Human", "Warrior"):
        print(f"Could not create character: {state.get_combat_log()}")
        sys.exit(1)
    controller.change_location(args.location)
    controller.move(args.x, args.y)

    network.start()
    print("Running, Ctrl-C to quit")

    steps_left = args.walk
    next_step = time.monotonic() + 1.0
    try:
        while True:
            controller.process_incoming()
            if steps_left > 0 and time.monotonic() >= next_step:
                controller.move(1, 0)
                steps_left -= 1
                next_step += 1.0
            time.sleep(0.05)
    except KeyboardInterrupt:
        pass
    finally:
        network.stop()


if __name__ == "__main__":
    main()
