"""Check processor temperatures once and run a command if they are too high.

Usage:
    proctempalert --high_cmd='notify-send hot' --critical_cmd='systemctl suspend'
    proctempalert --gpus --critical_cmd='...'

The exit status is the severity found: 0 normal, 1 high, 2 critical, or -1
when anything goes wrong.
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from dataclasses import replace
from typing import NoReturn, Sequence

from proctemp import __version__
from proctemp.sensors import (
    BUS_ISA,
    BUS_PCI,
    BUS_VIRTUAL,
    PsutilProvider,
    backend_version,
    is_cpu_zone,
)
from proctemp.therm import Bus, BusSet, Severity, classify, scan


class CommandLaunchError(Exception):
    """An alert command could not be started."""


class UnknownOptionError(Exception):
    """An unrecognised or malformed command-line flag."""


class OptionParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting on bad flags."""

    def error(self, message: str) -> NoReturn:
        raise UnknownOptionError(message)


# ── Command execution ──────────────────────────────────────────────────────


def execute(command: str) -> None:
    """Launch *command* through the shell without waiting for it."""
    print(f"executing '{command}'", file=sys.stderr)
    try:
        subprocess.Popen(command, shell=True, start_new_session=True)
    except OSError as e:
        raise CommandLaunchError(f"could not execute command: {e}") from e


def dispatch(severity: Severity, high_cmd: str, critical_cmd: str) -> None:
    """Run the command configured for *severity*; normal runs nothing."""
    if severity == Severity.NORMAL:
        return
    command = critical_cmd if severity == Severity.CRITICAL else high_cmd
    if not command:
        print(
            f"proctempalert: no command configured for {severity.name.lower()} temperature",
            file=sys.stderr,
        )
        return
    execute(command)


def select_buses(buses: BusSet, gpus: bool) -> BusSet:
    """Buses holding the sensors to check.

    GPUs live on the PCI bus. CPUs are the ISA bus plus the CPU thermal zones
    of the virtual bus; other virtual chips (DIMMs, chipset) are left out.
    """
    if gpus:
        return tuple(b for b in buses if b.id == BUS_PCI)
    selected: list[Bus] = []
    for bus in buses:
        if bus.id == BUS_ISA:
            selected.append(bus)
        elif bus.id == BUS_VIRTUAL:
            chips = tuple(c for c in bus.chips if is_cpu_zone(c.name))
            if chips:
                selected.append(replace(bus, chips=chips))
    return tuple(selected)


# ── CLI entry point ────────────────────────────────────────────────────────


def _build_parser() -> OptionParser:
    parser = OptionParser(
        prog="proctempalert",
        description="Check temperatures and run a command when they are too high.",
        add_help=False,
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show usage and exit")
    parser.add_argument(
        "-i", "--high_cmd", default="", metavar="CMD",
        help="Command to run when a temperature is above its high threshold",
    )
    parser.add_argument(
        "-c", "--critical_cmd", default="", metavar="CMD",
        help="Command to run when a temperature is above its critical threshold",
    )
    parser.add_argument(
        "-d", "--debug", type=int, choices=(0, 1, 2), default=0,
        help="Pretend this severity was found instead of reading the sensors",
    )
    parser.add_argument(
        "-g", "--gpus", action="store_true",
        help="Check GPU (PCI) sensors instead of CPU sensors",
    )
    return parser


def run(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.help:
        print(parser.format_help(), file=sys.stderr)
        return 0

    print(f"proctemp version {__version__}", file=sys.stderr)
    print(f"gpus {int(args.gpus)}", file=sys.stderr)
    print(f"debug {args.debug}", file=sys.stderr)
    print(f"high_cmd {args.high_cmd}", file=sys.stderr)
    print(f"critical_cmd {args.critical_cmd}", file=sys.stderr)

    if args.debug:
        severity = Severity(args.debug)
    else:
        provider = PsutilProvider()
        print(f"sensors backend {backend_version()}", file=sys.stderr)
        print(f"checking {'GPUs' if args.gpus else 'CPUs'}", file=sys.stderr)
        severity = classify(select_buses(scan(provider), args.gpus))

    dispatch(severity, args.high_cmd, args.critical_cmd)
    return int(severity)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        return run(argv)
    except Exception as e:
        print(e, file=sys.stderr)
        return -1


if __name__ == "__main__":
    sys.exit(main())
