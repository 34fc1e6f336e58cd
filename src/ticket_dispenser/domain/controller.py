import asyncio
import json
import logging
import threading
import time
from typing import Callable, List, Optional

from ticket_dispenser.domain.errors import DispenserBusy, InvalidTicketCount
from ticket_dispenser.domain.models import DispenseOutcome, DispenseStatus
from ticket_dispenser.domain.sequences import final_message, run_dispense
from ticket_dispenser.domain.status import StatusStore
from ticket_dispenser.hardware.pins import Actuator, Sensor
from ticket_dispenser.infra.config import DispenseTiming

logger = logging.getLogger(__name__)


class DispenseController:
    """
    Owns the actuator/sensor pair and admits at most one dispense run at a time.

    Runs execute on a daemon thread; their only observable result is the
    status message, which the thread finalizes together with clearing the
    busy flag.
    """

    def __init__(
        self,
        actuator: Actuator,
        sensor: Sensor,
        timing: Optional[DispenseTiming] = None,
        status: Optional[StatusStore] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.actuator = actuator
        self.sensor = sensor
        self.timing = timing or DispenseTiming()
        self.status = status or StatusStore()
        self._clock = clock
        self._sleep = sleep
        self._run_thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._sse_subscribers: List[asyncio.Queue] = []
        self.status.add_listener(self._broadcast_status)

    # ---------------------------------------------------
    # STATUS
    # ---------------------------------------------------
    def get_status(self) -> DispenseStatus:
        return self.status.snapshot()

    def attach_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._sse_subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        try:
            self._sse_subscribers.remove(queue)
        except ValueError:
            pass

    # ---------------------------------------------------
    # COMMANDS
    # ---------------------------------------------------
    def start_dispense(self, count: int) -> bool:
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidTicketCount(count)

        if not self.status.try_acquire("Starting ticket dispensing..."):
            raise DispenserBusy()

        logger.info("Dispensing %d ticket(s)", count)
        self._run_thread = threading.Thread(
            target=self._run, args=(count,), name="dispense-run", daemon=True
        )
        try:
            self._run_thread.start()
        except RuntimeError:
            self.status.release("Dispenser could not start")
            raise
        return True

    def join(self, timeout: Optional[float] = None) -> bool:
        thread = self._run_thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # ---------------------------------------------------
    # Internals
    # ---------------------------------------------------
    def _run(self, count: int) -> None:
        message = f"Dispensing failed after 0/{count} tickets"
        try:
            result = run_dispense(
                count,
                actuator=self.actuator,
                sensor=self.sensor,
                timing=self.timing,
                report=self.status.set_message,
                clock=self._clock,
                sleep=self._sleep,
            )
            message = final_message(result)
            if result.outcome is DispenseOutcome.COMPLETED:
                logger.info("Dispensed %d ticket(s)", count)
            else:
                logger.warning(
                    "Dispense %s after %d/%d tickets", result.outcome.value, result.confirmed, count
                )
        except Exception as exc:
            logger.exception("Dispense run aborted")
            message = f"{message}: {exc}"
        finally:
            self.status.release(message)

    def _broadcast_status(self, snapshot: DispenseStatus) -> None:
        if not self._loop or not self._sse_subscribers:
            return
        payload = json.dumps(snapshot.to_wire())
        for q in list(self._sse_subscribers):
            try:
                self._loop.call_soon_threadsafe(q.put_nowait, payload)
            except RuntimeError:
                # loop already closed
                continue
