from unittest.mock import MagicMock

import pytest

from ticket_dispenser.domain.errors import DeviceUnavailable
from ticket_dispenser.hardware import pins
from ticket_dispenser.hardware.pins import SensorLevel
from ticket_dispenser.infra.config import GpioConfig


@pytest.fixture
def fake_gpio(monkeypatch):
    gpio = MagicMock()
    gpio.BCM, gpio.OUT, gpio.IN = "BCM", "OUT", "IN"
    gpio.HIGH, gpio.LOW = 1, 0
    gpio.PUD_UP, gpio.PUD_DOWN = "PUD_UP", "PUD_DOWN"
    monkeypatch.setattr(pins, "GPIO", gpio)
    return gpio


def test_open_gpio_configures_pins(fake_gpio):
    actuator, sensor = pins.open_gpio(GpioConfig())

    fake_gpio.setmode.assert_called_once_with("BCM")
    fake_gpio.setup.assert_any_call(18, "OUT", initial=0)
    fake_gpio.setup.assert_any_call(17, "IN", pull_up_down="PUD_UP")
    assert actuator.pin == 18
    assert sensor.pin == 17


def test_actuator_drives_pin(fake_gpio):
    actuator = pins.GpioActuator(18)

    actuator.set_engaged(True)
    fake_gpio.output.assert_called_with(18, 1)
    actuator.set_engaged(False)
    fake_gpio.output.assert_called_with(18, 0)


def test_active_low_actuator_inverts(fake_gpio):
    actuator = pins.GpioActuator(22, active_high=False)

    fake_gpio.setup.assert_called_with(22, "OUT", initial=1)
    actuator.set_engaged(True)
    fake_gpio.output.assert_called_with(22, 0)


def test_sensor_reads_levels(fake_gpio):
    sensor = pins.GpioSensor(17, pull_up=False)
    fake_gpio.setup.assert_called_with(17, "IN", pull_up_down="PUD_DOWN")

    fake_gpio.input.return_value = 1
    assert sensor.read() is SensorLevel.HIGH
    fake_gpio.input.return_value = 0
    assert sensor.read() is SensorLevel.LOW


def test_missing_gpio_library_is_device_unavailable(monkeypatch):
    monkeypatch.setattr(pins, "GPIO", None)

    with pytest.raises(DeviceUnavailable):
        pins.open_gpio(GpioConfig())


def test_setup_failure_is_device_unavailable(fake_gpio):
    fake_gpio.setmode.side_effect = RuntimeError("Not running on a RPi!")

    with pytest.raises(DeviceUnavailable, match="Not running on a RPi"):
        pins.open_gpio(GpioConfig())


def test_close_gpio_cleans_up(fake_gpio):
    pins.close_gpio()

    fake_gpio.cleanup.assert_called_once_with()
