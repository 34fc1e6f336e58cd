import logging
import time
from typing import Callable, Optional

from ticket_dispenser.domain.models import DispenseOutcome, DispenseResult
from ticket_dispenser.hardware.pins import Actuator, Sensor, SensorLevel
from ticket_dispenser.infra.config import DispenseTiming

logger = logging.getLogger(__name__)


def run_dispense(
    count: int,
    *,
    actuator: Actuator,
    sensor: Sensor,
    timing: DispenseTiming,
    report: Optional[Callable[[str], None]] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> DispenseResult:
    """
    Feed tickets until `count` rising edges are seen on the sensor.

    Stops early when no edge arrives within `ticket_timeout_s` (jam) or the
    whole run exceeds `global_timeout_s`. The actuator is always released on
    the way out, including when the hardware raises; a hardware error, even
    one raised while releasing, becomes a FAILED result that keeps the count.
    """

    def _report(msg: str) -> None:
        if report:
            report(msg)

    dispensed = 0
    error: Optional[str] = None
    _report(f"Dispensing {count} ticket(s)...")

    try:
        # Priming
        actuator.set_engaged(False)
        sleep(timing.settle_delay_s)
        last_level = sensor.read()
        actuator.set_engaged(True)
        _report("Dispenser activated")

        start = clock()
        last_ticket = start

        while True:
            level = sensor.read()
            if last_level == SensorLevel.LOW and level == SensorLevel.HIGH:
                dispensed += 1
                last_ticket = clock()
                logger.debug("Ticket %d/%d detected", dispensed, count)
                _report(f"Ticket {dispensed}/{count} dispensed")
            last_level = level

            if dispensed >= count:
                outcome = DispenseOutcome.COMPLETED
                break

            sleep(timing.poll_interval_s)

            now = clock()
            if now - start >= timing.global_timeout_s:
                outcome = DispenseOutcome.TIMED_OUT
                break
            if now - last_ticket > timing.ticket_timeout_s:
                logger.warning(
                    "No ticket detected for %.1fs; dispenser may be jammed or out of tickets",
                    now - last_ticket,
                )
                outcome = DispenseOutcome.JAMMED
                break
    except Exception as exc:
        logger.exception("Dispense run failed after %d/%d tickets", dispensed, count)
        outcome = DispenseOutcome.FAILED
        error = str(exc) or exc.__class__.__name__
    finally:
        try:
            actuator.set_engaged(False)
        except Exception as exc:
            logger.exception("Failed to disengage actuator after %d/%d tickets", dispensed, count)
            if error is None:
                outcome = DispenseOutcome.FAILED
                error = str(exc) or exc.__class__.__name__

    return DispenseResult(outcome=outcome, requested=count, dispensed=dispensed, error=error)


def final_message(result: DispenseResult) -> str:
    if result.outcome is DispenseOutcome.COMPLETED:
        return f"Successfully dispensed {result.requested} ticket(s)"
    if result.outcome is DispenseOutcome.FAILED:
        return f"Dispensing failed after {result.confirmed}/{result.requested} tickets: {result.error}"
    msg = (
        f"Dispensing stopped after {result.confirmed}/{result.requested} tickets. "
        "Check if machine is empty or is not feeding."
    )
    if result.outcome is DispenseOutcome.TIMED_OUT:
        msg += " Operation timed out."
    return msg
