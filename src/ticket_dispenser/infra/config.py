from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class NetworkConfig:
    host: str = "0.0.0.0"
    api_port: int = 8080


@dataclass
class GpioConfig:
    # BCM numbering
    actuator_pin: int = 18
    sensor_pin: int = 17
    sensor_pull_up: bool = True
    actuator_active_high: bool = True


@dataclass
class DispenseTiming:
    settle_delay_s: float = 0.1
    poll_interval_s: float = 0.005
    ticket_timeout_s: float = 3.0
    global_timeout_s: float = 60.0


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class DispenserConfig:
    device_id: str = "ticket-dispenser"
    network: NetworkConfig = field(default_factory=NetworkConfig)
    gpio: GpioConfig = field(default_factory=GpioConfig)
    timing: DispenseTiming = field(default_factory=DispenseTiming)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_yaml(path: str) -> Dict[str, Any]:
    raw = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw) if raw else {}
    return data or {}


def load_config(path: Optional[str]) -> DispenserConfig:
    """
    Read YAML config into a typed DispenserConfig with sensible defaults.
    A missing file yields the defaults; unknown keys inside a section are an error.
    """
    if not path or not Path(path).exists():
        return DispenserConfig()

    data = _load_yaml(path)

    return DispenserConfig(
        device_id=data.get("device_id", "ticket-dispenser"),
        network=NetworkConfig(**(data.get("network") or {})),
        gpio=GpioConfig(**(data.get("gpio") or {})),
        timing=DispenseTiming(**(data.get("timing") or {})),
        logging=LoggingConfig(**(data.get("logging") or {})),
    )
