"""
GPIO capabilities handed to the dispense controller.

The controller only sees the two small protocols below; RPi.GPIO stays in here.
"""

from enum import IntEnum
from typing import Protocol, Tuple

try:
    import RPi.GPIO as GPIO  # type: ignore
    GPIO.setwarnings(False)
except Exception:
    GPIO = None

from ticket_dispenser.domain.errors import DeviceUnavailable
from ticket_dispenser.infra.config import GpioConfig


class SensorLevel(IntEnum):
    LOW = 0
    HIGH = 1


class Actuator(Protocol):
    def set_engaged(self, engaged: bool) -> None: ...


class Sensor(Protocol):
    def read(self) -> SensorLevel: ...


class GpioActuator:
    def __init__(self, pin: int, active_high: bool = True) -> None:
        self.pin = pin
        self.active_high = active_high
        GPIO.setup(pin, GPIO.OUT, initial=self._level(False))

    def _level(self, engaged: bool) -> int:
        return GPIO.HIGH if engaged == self.active_high else GPIO.LOW

    def set_engaged(self, engaged: bool) -> None:
        GPIO.output(self.pin, self._level(engaged))


class GpioSensor:
    def __init__(self, pin: int, pull_up: bool = True) -> None:
        self.pin = pin
        pull = GPIO.PUD_UP if pull_up else GPIO.PUD_DOWN
        GPIO.setup(pin, GPIO.IN, pull_up_down=pull)

    def read(self) -> SensorLevel:
        return SensorLevel.HIGH if GPIO.input(self.pin) else SensorLevel.LOW


def open_gpio(config: GpioConfig) -> Tuple[GpioActuator, GpioSensor]:
    if GPIO is None:
        raise DeviceUnavailable("RPi.GPIO is not available in this environment")
    try:
        GPIO.setmode(GPIO.BCM)
        actuator = GpioActuator(config.actuator_pin, active_high=config.actuator_active_high)
        sensor = GpioSensor(config.sensor_pin, pull_up=config.sensor_pull_up)
    except Exception as exc:
        raise DeviceUnavailable(f"GPIO setup failed: {exc}") from exc
    return actuator, sensor


def close_gpio() -> None:
    if GPIO is not None:
        GPIO.cleanup()
