"""Shared fakes: a scriptable sensor provider and an in-memory terminal."""

from __future__ import annotations

from typing import Any

import pytest

from proctemp.sensors import ProviderError, RawFan, RawTemperature
from proctemp.ui import Color

ChipSpec = tuple[str, list[RawTemperature], list[RawFan]]


class FakeProvider:
    """SensorProvider backed by a dict of bus index -> chips."""

    def __init__(
        self,
        buses: dict[int, list[ChipSpec]],
        names: dict[int, str] | None = None,
    ) -> None:
        self.buses = buses
        self.names = names or {}
        self.fail = False
        self._chips: dict[str, ChipSpec] = {}

    def list_buses(self) -> list[int]:
        if self.fail:
            raise ProviderError("sensors unavailable")
        return sorted(self.buses)

    def chips_on_bus(self, bus: int) -> list[str]:
        for spec in self.buses[bus]:
            self._chips[spec[0]] = spec
        return [spec[0] for spec in self.buses[bus]]

    def temperatures(self, chip: str) -> list[RawTemperature]:
        return self._chips[chip][1]

    def fan_speeds(self, chip: str) -> list[RawFan]:
        return self._chips[chip][2]

    def adapter_name(self, bus: int) -> str | None:
        return self.names.get(bus)


class FakeTerminal:
    """Records every drawn cell instead of talking to curses."""

    def __init__(self, rows: int = 24, cols: int = 90, keys: list[int] | None = None) -> None:
        self.rows = rows
        self.cols = cols
        self.keys = list(keys or [])
        self.cells: dict[tuple[int, int], tuple[str, Color | None, bool, bool]] = {}
        self.active = False
        self.inits = 0
        self.releases = 0
        self.refreshes = 0

    def init(self) -> tuple[int, int]:
        self.active = True
        self.inits += 1
        self.cells.clear()
        return self.rows, self.cols

    def release(self) -> None:
        self.active = False
        self.releases += 1

    def text(
        self,
        row: int,
        col: int,
        s: str,
        color: Color | None = None,
        bold: bool = False,
        reverse: bool = False,
    ) -> None:
        for i, ch in enumerate(s):
            self.cells[(row, col + i)] = (ch, color, bold, reverse)

    def getch(self) -> int:
        return self.keys.pop(0) if self.keys else -1

    def resized(self, rows: int, cols: int) -> bool:
        return (rows, cols) != (self.rows, self.cols)

    def refresh(self) -> None:
        self.refreshes += 1

    def library_version(self) -> str:
        return "ncurses version 6.4"

    # ── inspection helpers ─────────────────────────────────────────────

    def span(self, row: int, col: int, length: int) -> str:
        return "".join(self.cells.get((row, col + i), (" ",))[0] for i in range(length))

    def cell(self, row: int, col: int) -> tuple[str, Color | None, bool, bool] | None:
        return self.cells.get((row, col))


@pytest.fixture
def make_provider() -> Any:
    return FakeProvider


@pytest.fixture
def make_terminal() -> Any:
    return FakeTerminal
