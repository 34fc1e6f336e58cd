import argparse
import logging
import sys

import uvicorn

from ticket_dispenser.domain.controller import DispenseController
from ticket_dispenser.domain.errors import DeviceUnavailable
from ticket_dispenser.hardware.pins import close_gpio, open_gpio
from ticket_dispenser.infra.config import DispenserConfig, load_config
from ticket_dispenser.infra.network import get_local_ip
from ticket_dispenser.interfaces.api import create_app

logger = logging.getLogger("ticket_dispenser")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ticket dispenser backend")
    parser.add_argument(
        "--config",
        type=str,
        default="config/dispenser.yaml",
        help="Path to YAML configuration file",
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)

    cfg: DispenserConfig = load_config(args.config)
    logging.basicConfig(
        level=cfg.logging.level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        actuator, sensor = open_gpio(cfg.gpio)
    except DeviceUnavailable as exc:
        logger.error("Error opening GPIO: %s", exc)
        sys.exit(1)
    logger.info("GPIO initialized (actuator BCM%d, sensor BCM%d)", cfg.gpio.actuator_pin, cfg.gpio.sensor_pin)

    controller = DispenseController(actuator, sensor, timing=cfg.timing)
    app = create_app(config=cfg, controller=controller)

    logger.info("Web server started at http://%s:%d", get_local_ip(), cfg.network.api_port)
    try:
        uvicorn.run(app, host=cfg.network.host, port=cfg.network.api_port)
    finally:
        actuator.set_engaged(False)
        close_gpio()


if __name__ == "__main__":
    main()
