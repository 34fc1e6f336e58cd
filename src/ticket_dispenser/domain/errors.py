class DispenserError(Exception):
    """Base class for errors raised synchronously by the dispenser."""


class InvalidTicketCount(DispenserError, ValueError):
    def __init__(self, count) -> None:
        super().__init__(f"Invalid number of tickets: {count!r}")
        self.count = count


class DispenserBusy(DispenserError):
    def __init__(self) -> None:
        super().__init__("Already dispensing tickets")


class DeviceUnavailable(DispenserError, RuntimeError):
    """GPIO capabilities could not be acquired; the service cannot run."""
