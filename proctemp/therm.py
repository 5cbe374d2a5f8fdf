"""Sensor snapshot data model, scanning and severity classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from proctemp.sensors import SensorProvider

# Threshold value meaning "not defined by the sensor"
UNSET = -1.0


# ── Data types ─────────────────────────────────────────────────────────────


class Severity(IntEnum):
    NORMAL = 0
    HIGH = 1
    CRITICAL = 2


@dataclass(frozen=True)
class TemperatureReading:
    """One temperature channel, in degrees Celsius."""

    current: float
    high: float = UNSET
    critical: float = UNSET

    @property
    def has_thresholds(self) -> bool:
        return self.high > 0 and self.critical > 0


@dataclass(frozen=True)
class FanReading:
    current: float  # RPM


@dataclass(frozen=True)
class Chip:
    name: str
    temperatures: tuple[TemperatureReading, ...] = ()
    fans: tuple[FanReading, ...] = ()


@dataclass(frozen=True)
class Bus:
    name: str
    id: int
    chips: tuple[Chip, ...] = field(default_factory=tuple)


BusSet = tuple[Bus, ...]


# ── Unit conversion ────────────────────────────────────────────────────────


def ctof(c: float) -> float:
    """Convert Celsius to Fahrenheit."""
    return c * 9.0 / 5.0 + 32.0


def display_value(celsius: float, fahrenheit: bool) -> str:
    """Rounded temperature with its unit letter, e.g. ``55C`` or ``131F``."""
    if fahrenheit:
        return f"{round(ctof(celsius))}F"
    return f"{round(celsius)}C"


# ── Scanning ───────────────────────────────────────────────────────────────


def scan(provider: SensorProvider) -> BusSet:
    """Build one snapshot of every bus that has at least one chip.

    Enumeration order from the provider is kept as-is; buses with no chips
    are dropped. Provider errors propagate to the caller.
    """
    buses: list[Bus] = []
    for index in provider.list_buses():
        handles = provider.chips_on_bus(index)
        if not handles:
            continue
        chips = tuple(
            Chip(
                name=str(handle),
                temperatures=tuple(
                    TemperatureReading(t.current, t.high, t.critical)
                    for t in provider.temperatures(handle)
                ),
                fans=tuple(FanReading(f.current) for f in provider.fan_speeds(handle)),
            )
            for handle in handles
        )
        name = provider.adapter_name(index)
        buses.append(Bus(name=name if name is not None else "Unknown", id=index, chips=chips))
    return tuple(buses)


# ── Classification ─────────────────────────────────────────────────────────


def classify_reading(reading: TemperatureReading) -> Severity:
    if reading.critical > 0 and reading.current > reading.critical:
        return Severity.CRITICAL
    if reading.high > 0 and reading.current > reading.high:
        return Severity.HIGH
    return Severity.NORMAL


def classify(buses: BusSet) -> Severity:
    """Highest severity over every temperature in the snapshot."""
    return max(
        (
            classify_reading(t)
            for bus in buses
            for chip in bus.chips
            for t in chip.temperatures
        ),
        default=Severity.NORMAL,
    )
