from __future__ import annotations

from argparse import ArgumentParser, ArgumentTypeError
from typing import TYPE_CHECKING, Final, NamedTuple, cast

from rich_argparse import RichHelpFormatter

from whac.game.constants import DEFAULT_SLOT_COUNT, MAX_SLOT_COUNT

from .logging_conf import LOG_ABBREV_2_LVL, LOG_LVL_2_COLOR

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .logging_conf import LogLvl

_DEFAULT_HOST: Final = "127.0.0.1"


def _slot_count(val: str) -> int:
    try:
        count = int(val)
    except ValueError as e:
        msg = f"not an integer: {val!r}"
        raise ArgumentTypeError(msg) from e

    if not (1 <= count <= MAX_SLOT_COUNT):
        msg = f"must be between 1 and {MAX_SLOT_COUNT}: {count}"
        raise ArgumentTypeError(msg)

    return count


def _mk_parser() -> ArgumentParser:
    RichHelpFormatter.usage_markup = True
    RichHelpFormatter.styles.update(
        {
            "argparse.args": "cyan",
            "argparse.groups": "green bold",
            "argparse.metavar": "dim cyan",
            "argparse.usage": "dim cyan",
            "argparse.prog": "cyan bold",
        },
    )

    parser = ArgumentParser(
        description="Timed Whac-A-Mole session server (HTTP + optional MQTT)",
        formatter_class=RichHelpFormatter,
        usage="%(prog)s [cyan]\\[options][/]",
    )

    arg = parser.add_argument

    arg(
        "-n",
        "--slots",
        type=_slot_count,
        default=DEFAULT_SLOT_COUNT,
        help=f"number of slots (default: [yellow]{DEFAULT_SLOT_COUNT}[/], max [yellow]{MAX_SLOT_COUNT}[/])",
        metavar="N",
    )
    arg("--host", default=_DEFAULT_HOST, help=f'bind address (default: [green]"{_DEFAULT_HOST}"[/])', metavar="H")
    arg("--mute", action="store_true", help="start with audio cues muted")

    log_lvl_choices = ", ".join(
        f"[{clr}]{abbr}[/]" for abbr, clr in zip(LOG_ABBREV_2_LVL, LOG_LVL_2_COLOR.values(), strict=True)
    )

    arg(
        "-l",
        "--log-level",
        type=str,
        default="INF",
        help=f"base logging level (default: [yellow]INF[/])\t[{log_lvl_choices}]",
        choices=LOG_ABBREV_2_LVL,
        dest="log_level",
        metavar="L",
    )
    return parser


class _Args(NamedTuple):
    slots: int
    host: str
    muted: bool
    log_level: LogLvl


def get_cli_args(argv: Sequence[str] | None = None) -> _Args:
    """Create & return parsed arguments."""

    parser = _mk_parser()
    args = parser.parse_args(argv)

    return _Args(
        slots=args.slots,
        host=args.host,
        muted=args.mute,
        log_level=LOG_ABBREV_2_LVL[cast("str", args.log_level)],
    )
