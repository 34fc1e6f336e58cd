import threading
from typing import Iterable, List, Optional, Tuple

import pytest

from ticket_dispenser.hardware.pins import SensorLevel
from ticket_dispenser.infra.config import DispenseTiming


class FakeClock:
    """Simulated monotonic clock; `sleep` advances it instantly.

    With a `gate`, every sleep first waits for the gate to open so a run can be
    held mid-flight.
    """

    def __init__(self, gate: Optional[threading.Event] = None) -> None:
        self.now = 0.0
        self.gate = gate
        self.sleeps: List[float] = []
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self.now

    def sleep(self, seconds: float) -> None:
        if self.gate is not None:
            assert self.gate.wait(timeout=5), "gate never opened"
        with self._lock:
            self.sleeps.append(seconds)
            self.now += seconds


class FakeActuator:
    def __init__(self) -> None:
        self.history: List[bool] = []

    @property
    def engaged(self) -> bool:
        return bool(self.history) and self.history[-1]

    def set_engaged(self, engaged: bool) -> None:
        self.history.append(engaged)


class ScriptedSensor:
    """Sensor whose level follows a list of (time, level) transitions on a FakeClock."""

    def __init__(
        self,
        clock: FakeClock,
        transitions: Iterable[Tuple[float, SensorLevel]] = (),
        initial: SensorLevel = SensorLevel.LOW,
    ) -> None:
        self.clock = clock
        self.initial = initial
        self.transitions = sorted(transitions)
        self.reads = 0

    def read(self) -> SensorLevel:
        self.reads += 1
        now = self.clock()
        level = self.initial
        for at, value in self.transitions:
            if at > now:
                break
            level = value
        return level


def pulses(times: Iterable[float], width: float = 0.02):
    """LOW->HIGH->LOW pulses starting at each of `times`."""
    out = []
    for t in times:
        out.append((t, SensorLevel.HIGH))
        out.append((t + width, SensorLevel.LOW))
    return out


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def actuator() -> FakeActuator:
    return FakeActuator()


@pytest.fixture
def timing() -> DispenseTiming:
    return DispenseTiming(
        settle_delay_s=0.1,
        poll_interval_s=0.005,
        ticket_timeout_s=3.0,
        global_timeout_s=60.0,
    )
