import threading
from typing import Callable, List

from ticket_dispenser.domain.models import DispenseStatus

StatusListener = Callable[[DispenseStatus], None]


class StatusStore:
    """
    The (message, is_dispensing) pair shared between the run thread and readers.

    `is_dispensing` doubles as the single-flight guard. Both fields are only
    touched under `_lock`. Writers also hold `_write_lock` through notifying
    listeners, so listeners see snapshots in the order they were written;
    readers never wait on it. Listeners must not block or write back.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._message = ""
        self._dispensing = False
        self._listeners: List[StatusListener] = []

    def snapshot(self) -> DispenseStatus:
        with self._lock:
            return DispenseStatus(message=self._message, is_dispensing=self._dispensing)

    def try_acquire(self, message: str) -> bool:
        with self._write_lock:
            with self._lock:
                if self._dispensing:
                    return False
                self._dispensing = True
                self._message = message
                snapshot = DispenseStatus(message=message, is_dispensing=True)
            self._notify(snapshot)
        return True

    def set_message(self, message: str) -> None:
        with self._write_lock:
            with self._lock:
                self._message = message
                snapshot = DispenseStatus(message=message, is_dispensing=self._dispensing)
            self._notify(snapshot)

    def release(self, message: str) -> None:
        with self._write_lock:
            with self._lock:
                self._dispensing = False
                self._message = message
                snapshot = DispenseStatus(message=message, is_dispensing=False)
            self._notify(snapshot)

    def add_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def _notify(self, snapshot: DispenseStatus) -> None:
        for listener in list(self._listeners):
            listener(snapshot)
