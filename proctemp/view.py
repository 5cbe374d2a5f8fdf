"""Interactive temperature view: proctempview.

Samples every sensor once per frame and draws it as bar graphs. The input
read times out after a second, which is what paces the sampling.

Usage:
    proctempview
    proctempview --config path/to/config.toml
    proctempview --once
"""

from __future__ import annotations

import functools
import sys
from pathlib import Path
from typing import Sequence

from proctemp.alert import OptionParser, UnknownOptionError
from proctemp.config import DEFAULT_PATH, load_options, save_options
from proctemp.sensors import ProviderError, PsutilProvider, SensorProvider
from proctemp.therm import scan
from proctemp.ui import CursesTerminal, Renderer, TextRenderer


class EventLoop:
    """Poll, draw, wait for one key, handle it; until the renderer is done."""

    def __init__(self, provider: SensorProvider, renderer: Renderer) -> None:
        self.provider = provider
        self.renderer = renderer
        self.failed = False

    def tick(self) -> None:
        try:
            buses = scan(self.provider)
        except ProviderError as e:
            # keep the session alive and try again next frame
            self.renderer.clear_body()
            self.renderer.show_message(str(e))
            self.failed = True
        else:
            if self.failed:
                self.renderer.show_message("")
                self.failed = False
            self.renderer.render(buses)
        self.renderer.process(self.renderer.read_key())

    def run(self) -> None:
        try:
            while not self.renderer.done:
                self.tick()
        finally:
            self.renderer.release()


# ── CLI entry point ────────────────────────────────────────────────────────


def _build_parser() -> OptionParser:
    parser = OptionParser(
        prog="proctempview",
        description="Live bar-graph view of hardware temperatures.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help=f"Path to TOML config file (default: {DEFAULT_PATH})",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Print the current readings as text and exit",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    try:
        args = _build_parser().parse_args(argv)
    except UnknownOptionError as e:
        print(f"proctempview: {e}", file=sys.stderr)
        return 1

    config_path: Path = args.config if args.config is not None else DEFAULT_PATH
    options = load_options(config_path)

    try:
        provider = PsutilProvider()
        if args.once:
            print(f"fahrenheit:\t{int(options.use_fahrenheit)}", file=sys.stderr)
            TextRenderer(options).render(scan(provider))
            return 0
    except ProviderError as e:
        print(f"proctempview: {e}", file=sys.stderr)
        return 1

    saver = functools.partial(save_options, path=config_path)
    renderer = Renderer(CursesTerminal(), options, saver)
    try:
        EventLoop(provider, renderer).run()
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
