"""
vlogwheel コマンドライン:

    vlogwheel add-member 201234567890@s.whatsapp.net Alice
    vlogwheel run-cycle
    vlogwheel serve --port 3000
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import settings
from .errors import WheelError
from .logging_setup import configure_logging

logger = logging.getLogger("vlogwheel.cli")


def _cmd_add_member(args: argparse.Namespace) -> int:
    from .main import build_wheel

    wheel = build_wheel()
    member = wheel.add_member(args.member_id, " ".join(args.name) or None)
    print(f"Added member {member.id} {member.display_name}")
    return 0


def _cmd_run_cycle(args: argparse.Namespace) -> int:
    from .main import build_wheel

    wheel = build_wheel()
    result = wheel.run_daily_cycle()
    picked = result.pick.member_id if result.pick else "-"
    print(f"{result.day_key}: pick={picked} created={result.created} "
          f"finalized={len(result.effects)} skipped={result.skipped or '-'}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("vlogwheel.main:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vlogwheel", description="Daily vlog wheel bot")
    sub = parser.add_subparsers(dest="command", required=True)

    p_add = sub.add_parser("add-member", help="add or rename a member")
    p_add.add_argument("member_id")
    p_add.add_argument("name", nargs="*")
    p_add.set_defaults(func=_cmd_add_member)

    p_cycle = sub.add_parser("run-cycle", help="run the daily cycle once now")
    p_cycle.set_defaults(func=_cmd_run_cycle)

    p_serve = sub.add_parser("serve", help="run the HTTP API with the daily scheduler")
    p_serve.add_argument("--host", default="0.0.0.0")
    p_serve.add_argument("--port", type=int, default=3000)
    p_serve.set_defaults(func=_cmd_serve)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    configure_logging(settings.ENV, settings.LOG_LEVEL)
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except WheelError as e:
        logger.error("%s: %s", e.code, e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
