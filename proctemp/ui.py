"""Terminal views of a sensor snapshot.

``Renderer`` draws one row per temperature with a coloured bar graph and
handles the interactive keys. All drawing goes through a small terminal
interface so the layout can be exercised without a real TTY;
``CursesTerminal`` is the implementation used at runtime.
"""

from __future__ import annotations

import curses
import random
import sys
from dataclasses import replace
from enum import IntEnum
from typing import Callable, Protocol, TextIO

from proctemp import __version__
from proctemp.config import ConfigWriteError, Options
from proctemp.sensors import backend_version
from proctemp.therm import BusSet, TemperatureReading, display_value

# Bar graph domain: BAR_MIN up to critical + BAR_MARGIN
BAR_MIN = 40
BAR_MARGIN = 5

INPUT_TIMEOUT_MS = 1000


class Color(IntEnum):
    """Colour styles; the values double as curses colour-pair ids."""

    WHITE = 1
    GREEN = 2
    YELLOW = 3
    RED = 4
    BLUE = 5


_CURSES_COLORS: dict[Color, int] = {
    Color.WHITE: curses.COLOR_WHITE,
    Color.GREEN: curses.COLOR_GREEN,
    Color.YELLOW: curses.COLOR_YELLOW,
    Color.RED: curses.COLOR_RED,
    Color.BLUE: curses.COLOR_BLUE,
}


# ── Colour and bar helpers ─────────────────────────────────────────────────


def shade(value: float, high: float, critical: float) -> Color:
    if value >= critical:
        return Color.RED
    if value >= high:
        return Color.YELLOW
    return Color.GREEN


def _scale(width: int, value: float, top: float) -> float:
    return width * (value - BAR_MIN) / (top - BAR_MIN)


def bar_fill(width: int, reading: TemperatureReading) -> int:
    """Number of bar cells covered by the reading's current value."""
    top = reading.critical + BAR_MARGIN
    if top <= BAR_MIN:
        return width if reading.current >= reading.critical else 0
    current = min(max(reading.current, BAR_MIN), top)
    return int(_scale(width, current, top))


def bar_cell_color(k: int, width: int, reading: TemperatureReading) -> Color:
    """Colour of cell *k*, from the thresholds mapped onto the bar."""
    top = reading.critical + BAR_MARGIN
    if top <= BAR_MIN:
        return Color.RED
    if k < _scale(width, reading.high, top):
        return Color.GREEN
    if k < _scale(width, reading.critical, top):
        return Color.YELLOW
    return Color.RED


# ── Terminals ──────────────────────────────────────────────────────────────


class Terminal(Protocol):
    def init(self) -> tuple[int, int]: ...

    def release(self) -> None: ...

    def text(
        self,
        row: int,
        col: int,
        s: str,
        color: Color | None = None,
        bold: bool = False,
        reverse: bool = False,
    ) -> None: ...

    def getch(self) -> int: ...

    def resized(self, rows: int, cols: int) -> bool: ...

    def refresh(self) -> None: ...

    def library_version(self) -> str: ...


class CursesTerminal:
    """Raw-mode curses screen with the five proctemp colour pairs."""

    def __init__(self, timeout_ms: int = INPUT_TIMEOUT_MS) -> None:
        self.timeout_ms = timeout_ms
        self.screen: curses.window | None = None

    def init(self) -> tuple[int, int]:
        screen = curses.initscr()
        self.screen = screen
        curses.start_color()
        curses.use_default_colors()
        curses.raw()
        screen.keypad(True)
        curses.noecho()
        try:
            curses.curs_set(0)
        except curses.error:
            pass  # terminal cannot hide the cursor
        screen.erase()
        for color, curses_color in _CURSES_COLORS.items():
            curses.init_pair(color, curses_color, -1)
        screen.timeout(self.timeout_ms)
        rows, cols = screen.getmaxyx()
        return rows, cols

    def release(self) -> None:
        if self.screen is None:
            return
        self.screen = None
        curses.endwin()

    def text(
        self,
        row: int,
        col: int,
        s: str,
        color: Color | None = None,
        bold: bool = False,
        reverse: bool = False,
    ) -> None:
        if self.screen is None:
            return
        attr = curses.color_pair(color) if color is not None else 0
        if bold:
            attr |= curses.A_BOLD
        if reverse:
            attr |= curses.A_REVERSE
        try:
            self.screen.addstr(row, col, s, attr)
        except curses.error:
            pass  # writes past the window edge

    def getch(self) -> int:
        if self.screen is None:
            return -1
        return self.screen.getch()

    def resized(self, rows: int, cols: int) -> bool:
        return curses.is_term_resized(rows, cols)

    def refresh(self) -> None:
        if self.screen is not None:
            self.screen.refresh()

    def library_version(self) -> str:
        version = getattr(curses, "ncurses_version", None)
        if version is None:
            return "ncurses version unknown"
        return f"ncurses version {version.major}.{version.minor}"


# ── Interactive renderer ───────────────────────────────────────────────────


class Renderer:
    """Bar-graph view of a snapshot plus the key handling around it.

    The renderer is the only writer of ``options``: ``t`` flips the unit and
    ``s`` hands the options to *saver* with the terminal released.
    """

    def __init__(
        self,
        term: Terminal,
        options: Options,
        saver: Callable[[Options], None],
        rng: random.Random | None = None,
    ) -> None:
        self.term = term
        self.options = options
        self.saver = saver
        self.rng = rng if rng is not None else random.Random()
        self.rows = 0
        self.cols = 0
        self.debug = False
        self.done = False
        self.message = ""
        try:
            self.init()
        except Exception:
            self.release()
            raise
        self.labels()

    def init(self) -> None:
        self.rows, self.cols = self.term.init()

    def release(self) -> None:
        self.term.release()

    def reinit(self) -> None:
        self.release()
        self.init()
        self.labels()

    def read_key(self) -> int:
        return self.term.getch()

    # ── Event handling ─────────────────────────────────────────────────

    def process(self, ch: int) -> None:
        if ch in (ord("q"), ord("Q")):
            self.done = True
        elif ch in (ord("s"), ord("S")):
            self.release()
            self._save()
            self.init()
            self.labels()
        elif ch in (ord("t"), ord("T")):
            self.options.use_fahrenheit = not self.options.use_fahrenheit
        elif ch == ord("!"):
            self.debug = not self.debug
            self.reinit()
        if self.term.resized(self.rows, self.cols):
            self.reinit()
        self.term.refresh()

    def _save(self) -> None:
        try:
            self.saver(self.options)
        except ConfigWriteError as e:
            print(f"proctempview: {e}", file=sys.stderr)
            self.message = str(e)
        else:
            self.message = "options saved"

    # ── Drawing ────────────────────────────────────────────────────────

    def _version(self) -> str:
        return f"proctempview version {__version__}"

    def labels(self) -> None:
        col = 2 * self.cols // 3
        self.term.text(self.rows - 1, 0, self._version(), Color.BLUE, bold=True)
        if self.message:
            self.show_message(self.message)

        lines = [
            "T = change Temperature scale",
            "S = Save configuration options",
            "Q = Quit",
        ]
        if self.debug:
            lines += [
                "",
                self.term.library_version(),
                backend_version(),
                f"terminal dimensions {self.rows} X {self.cols}",
                "",
                "YOU ARE IN DEBUG MODE.",
                "PRESS '!' TO TURN OFF DEBUG MODE.",
            ]
        for row, line in enumerate(lines):
            if line:
                self.term.text(row, col, line)

    def show_message(self, message: str) -> None:
        """Put *message* on the footer after the version, blanking any older one."""
        self.message = message
        col = len(self._version()) + 2
        width = max(0, self.cols - col - 1)
        self.term.text(self.rows - 1, col, message.ljust(width)[:width], Color.RED, bold=True)

    def clear_body(self) -> None:
        """Blank every row above the footer, left of the help column."""
        blank = " " * (2 * self.cols // 3)
        for row in range(self.rows - 1):
            self.term.text(row, 0, blank)

    def render(self, buses: BusSet) -> None:
        self.clear_body()
        max_cpus = max(
            (len(chip.temperatures) for bus in buses for chip in bus.chips),
            default=0,
        )
        # widest reading index plus a space
        indent1 = len(str(max_cpus)) + 1
        # up to 3 digits, the unit letter and a space
        indent2 = indent1 + 5
        size = 2 * self.cols // 3 - indent2 - 5
        fahrenheit = self.options.use_fahrenheit

        row = 0
        for bus in buses:
            # the last line belongs to the footer
            if row + 1 >= self.rows:
                return
            self.term.text(row, 0, bus.name)
            row += 1
            for chipno, chip in enumerate(bus.chips):
                if row + 1 >= self.rows:
                    return
                name = f"{chip.name} {chipno}" if len(bus.chips) > 1 else chip.name
                self.term.text(row, 0, name)
                row += 1
                for n, reading in enumerate(chip.temperatures):
                    if row + 1 >= self.rows:
                        return
                    if self.debug:
                        reading = self._jitter(reading, len(chip.temperatures))
                    self.term.text(row, 0, str(n))
                    value = f"{display_value(reading.current, fahrenheit):>4}"
                    if reading.has_thresholds:
                        color = shade(reading.current, reading.high, reading.critical)
                        self.term.text(row, indent1, value, color, bold=True)
                        self.temp_bar(row, indent2, size, reading)
                    else:
                        self.term.text(row, indent1, value, Color.GREEN, bold=True)
                    row += 1

    def temp_bar(self, row: int, col: int, size: int, reading: TemperatureReading) -> None:
        if size < 2:
            return
        self.term.text(row, col, "[", bold=True)
        self.term.text(row, col + size - 1, "]", bold=True)
        filled = bar_fill(size, reading)
        for k in range(1, size - 1):
            color = bar_cell_color(k, size, reading)
            if k < filled:
                self.term.text(row, col + k, " ", color, bold=True, reverse=True)
            else:
                self.term.text(row, col + k, "-", color, bold=True)

    def _jitter(self, reading: TemperatureReading, count: int) -> TemperatureReading:
        """Occasionally swap in a random value between high and critical + 10."""
        if not reading.has_thresholds or self.rng.randrange(count) != 0:
            return reading
        span = max(1, int(reading.critical + 10 - reading.high))
        return replace(reading, current=float(self.rng.randrange(span) + reading.high))


# ── Plain text ─────────────────────────────────────────────────────────────


class TextRenderer:
    """Prints a snapshot as plain lines, one value per line."""

    def __init__(self, options: Options, stream: TextIO | None = None) -> None:
        self.options = options
        self.stream = stream if stream is not None else sys.stdout

    def render(self, buses: BusSet) -> None:
        out = self.stream
        for bus in buses:
            print(bus.name, file=out)
            for chip in bus.chips:
                print(f"adapter {chip.name}", file=out)
                for t in chip.temperatures:
                    print(display_value(t.current, self.options.use_fahrenheit), file=out)
                for fan in chip.fans:
                    print(f"{fan.current:.0f} RPM", file=out)
