"""Sensor backend: bus/chip enumeration on top of psutil.

psutil reports sensors grouped by hwmon driver name ("coretemp", "nvme",
"amdgpu", ...). Each group is one chip; chips are placed on a small fixed
set of buses according to the kind of device the driver talks to, in the
same way lm-sensors prints an "Adapter:" line per chip.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import psutil

from proctemp.therm import UNSET

ChipHandle = str


class ProviderError(Exception):
    """The sensor backend is unavailable or failed to answer a query."""


@dataclass(frozen=True)
class RawTemperature:
    current: float
    high: float = UNSET
    critical: float = UNSET


@dataclass(frozen=True)
class RawFan:
    current: float


class SensorProvider(Protocol):
    def list_buses(self) -> Sequence[int]: ...

    def chips_on_bus(self, bus: int) -> Sequence[ChipHandle]: ...

    def temperatures(self, chip: ChipHandle) -> Sequence[RawTemperature]: ...

    def fan_speeds(self, chip: ChipHandle) -> Sequence[RawFan]: ...

    def adapter_name(self, bus: int) -> str | None: ...


# ── Bus table ──────────────────────────────────────────────────────────────

BUS_ISA = 0
BUS_PCI = 1
BUS_ACPI = 2
BUS_VIRTUAL = 3

ADAPTER_NAMES: dict[int, str] = {
    BUS_ISA: "ISA adapter",
    BUS_PCI: "PCI adapter",
    BUS_ACPI: "ACPI interface",
    BUS_VIRTUAL: "Virtual device",
}

# Driver-name prefixes, matched against the lower-cased psutil group name
_ISA_DRIVERS = (
    "coretemp", "k10temp", "k8temp", "zenpower", "fam15h_power", "via_cputemp",
    "it8", "nct6", "w83", "f71", "thinkpad", "dell_smm", "applesmc",
)
_PCI_DRIVERS = (
    "amdgpu", "radeon", "nouveau", "i915", "xe", "nvme", "iwlwifi", "mt7",
    "ath", "mlx", "bnxt", "ixgbe", "igb", "r8169", "ssd",
)
_ACPI_DRIVERS = ("acpitz", "acpi")
# CPU thermal zones exposed by SoC platforms, which land on the virtual bus
_CPU_ZONES = ("cpu", "soc_dts", "x86_pkg_temp", "soc_thermal")


def bus_for_chip(name: str) -> int:
    """Return the bus index a psutil sensor group belongs on."""
    lowered = name.lower()
    if lowered.startswith(_ISA_DRIVERS):
        return BUS_ISA
    if lowered.startswith(_PCI_DRIVERS):
        return BUS_PCI
    if lowered.startswith(_ACPI_DRIVERS):
        return BUS_ACPI
    return BUS_VIRTUAL


def is_cpu_zone(name: str) -> bool:
    return name.lower().startswith(_CPU_ZONES)


def _threshold(value: float | None) -> float:
    return UNSET if value is None else float(value)


def backend_version() -> str:
    return f"psutil {psutil.__version__}"


# ── psutil provider ────────────────────────────────────────────────────────


class PsutilProvider:
    """SensorProvider reading ``psutil.sensors_temperatures()``/``sensors_fans()``.

    ``list_buses()`` takes a fresh sample; the other queries answer from that
    sample so a whole scan sees one consistent reading of the hardware.
    """

    def __init__(self) -> None:
        if not hasattr(psutil, "sensors_temperatures"):
            raise ProviderError("temperature sensors are not supported on this platform")
        self._temps: dict[str, list[Any]] = {}
        self._fans: dict[str, list[Any]] = {}
        self.sample()

    def sample(self) -> None:
        try:
            self._temps = dict(psutil.sensors_temperatures())
            fans = getattr(psutil, "sensors_fans", None)
            self._fans = dict(fans()) if fans is not None else {}
        except (OSError, RuntimeError) as e:
            raise ProviderError(f"could not read sensors: {e}") from e

    def list_buses(self) -> list[int]:
        self.sample()
        return sorted(ADAPTER_NAMES)

    def chips_on_bus(self, bus: int) -> list[ChipHandle]:
        names = list(self._temps)
        names += [n for n in self._fans if n not in self._temps]
        return [n for n in names if bus_for_chip(n) == bus]

    def temperatures(self, chip: ChipHandle) -> list[RawTemperature]:
        return [
            RawTemperature(
                current=float(entry.current),
                high=_threshold(entry.high),
                critical=_threshold(entry.critical),
            )
            for entry in self._temps.get(chip, [])
        ]

    def fan_speeds(self, chip: ChipHandle) -> list[RawFan]:
        return [RawFan(current=float(entry.current)) for entry in self._fans.get(chip, [])]

    def adapter_name(self, bus: int) -> str | None:
        return ADAPTER_NAMES.get(bus)
