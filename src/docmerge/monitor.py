"""
Module to measure store requests and document updates.

Measurements are recorded to a monitor. The global "monitors" object is a list of monitors
that is itself a monitor, recording each measurement to every monitor it contains.
Applications append their own monitors to it to collect measurements.

Measured work records two measurements, named after what is measured:
• <prefix>_requests: counter, tagged with status "success" or "failure"
• <prefix>_duration: gauge of elapsed seconds, recorded only if the work succeeded
"""

import asyncio
import time

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal


Tags = dict[str, str]


@dataclass(frozen=True)
class Measurement:
    """
    An individual measurement.

    Parameters and attributes:
    • name: snake_case name of the measurement
    • type: "counter" or "gauge"
    • value: measured value
    • tags: key-value pairs that qualify the measurement
    • unit: unit of measure
    • timestamp: date and time of the measurement  [now]
    """

    name: str
    type: Literal["counter", "gauge"]
    value: int | float
    tags: Tags | None = None
    unit: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    def __post_init__(self):
        if not self.name.isidentifier():
            raise ValueError(f"invalid measurement name: {self.name!r}")
        if self.type not in ("counter", "gauge"):
            raise ValueError(f"invalid measurement type: {self.type!r}")


class Monitor:
    """Base class for a monitor that records measurements."""

    async def record(self, measurement: Measurement) -> None:
        raise NotImplementedError


class Monitors(Monitor, list[Monitor]):
    """A list of monitors, to which all measurements are recorded."""

    async def record(self, measurement: Measurement) -> None:
        await asyncio.gather(*(monitor.record(measurement) for monitor in self))


monitors = Monitors()


async def record(measurement: Measurement, monitor: Monitor | None = None) -> None:
    """Record a measurement to a monitor, or to the global monitors if none is specified."""
    await (monitor if monitor is not None else monitors).record(measurement)


async def count(name: str, *, tags: Tags | None = None, monitor: Monitor | None = None):
    """Record a counter measurement of a single occurrence."""
    await record(Measurement(name=name, type="counter", value=1, tags=tags), monitor)


@asynccontextmanager
async def measure(prefix: str, *, tags: Tags | None = None, monitor: Monitor | None = None):
    """
    An asynchronous context manager that measures the work it encloses.

    Parameters:
    • prefix: prefix of measurement names (e.g. "store", "update")
    • tags: key-value pairs that qualify the measurements
    • monitor: monitor to record measurements  [global monitors]

    Exceptions raised by the enclosed work propagate after the failure is counted.
    """
    name = f"{prefix}_requests"
    begin = time.perf_counter()
    try:
        yield
    except Exception:
        await count(name, tags={**(tags or {}), "status": "failure"}, monitor=monitor)
        raise
    duration = time.perf_counter() - begin
    await record(
        Measurement(
            name=f"{prefix}_duration", type="gauge", value=duration, tags=tags, unit="s"
        ),
        monitor,
    )
    await count(name, tags={**(tags or {}), "status": "success"}, monitor=monitor)
