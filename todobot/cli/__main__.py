from __future__ import annotations

import argparse
import asyncio
import sys

from todobot.api.bot_api import BotApiError
from todobot.config import ConfigError
from .commands import cmd_poll_once_async, cmd_preflight, cmd_replay_async, cmd_run_async, cmd_send_async


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0; got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todobot")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Long-poll the Bot API and run the todo-list bot")
    p_run.add_argument("--config")
    p_run.add_argument("--from-offset", type=_non_negative_int)
    p_run.add_argument("--max-updates", type=_non_negative_int)

    p_send = sub.add_parser("send", help="Send a single message to a chat")
    p_send.add_argument("chat_id", type=int)
    p_send.add_argument("text")
    p_send.add_argument("--config")

    p_poll = sub.add_parser("poll-once", help="Run one getUpdates cycle and print the batch")
    p_poll.add_argument("--config")
    p_poll.add_argument("--offset", type=int)
    p_poll.add_argument("--json", action="store_true")
    p_poll.add_argument("--record", help="Append received updates to a JSONL file")

    p_pf = sub.add_parser("preflight", help="Validate configuration (token from env or TOML)")
    p_pf.add_argument("--config")
    p_pf.add_argument("--json", action="store_true")

    p_replay = sub.add_parser("replay", help="Run the todo-list bot offline over a JSONL file of updates")
    p_replay.add_argument("updates_file")
    p_replay.add_argument("--from-offset", type=int, default=0)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.cmd == "run":
            asyncio.run(cmd_run_async(args.config, from_offset=args.from_offset, max_updates=args.max_updates))
        elif args.cmd == "send":
            asyncio.run(cmd_send_async(args.chat_id, args.text, config_path=args.config))
        elif args.cmd == "poll-once":
            asyncio.run(cmd_poll_once_async(args.config, offset=args.offset, as_json=args.json, record=args.record))
        elif args.cmd == "preflight":
            cmd_preflight(args.config, as_json=args.json, strict=True)
        elif args.cmd == "replay":
            asyncio.run(cmd_replay_async(args.updates_file, from_offset=args.from_offset))
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2
    except BotApiError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
