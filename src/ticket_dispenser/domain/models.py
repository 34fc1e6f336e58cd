from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class DispenseStatus(BaseModel):
    message: str = ""
    is_dispensing: bool = False

    def to_wire(self) -> dict:
        """Shape served to the web UI."""
        return {"status": self.message, "isDispensing": self.is_dispensing}


class DispenseOutcome(str, Enum):
    COMPLETED = "COMPLETED"
    JAMMED = "JAMMED"
    TIMED_OUT = "TIMED_OUT"
    FAILED = "FAILED"  # hardware I/O raised mid-run


@dataclass(frozen=True)
class DispenseResult:
    outcome: DispenseOutcome
    requested: int
    dispensed: int
    error: Optional[str] = None

    @property
    def confirmed(self) -> int:
        # On an abnormal stop the last counted edge may still be in transit.
        if self.outcome is DispenseOutcome.COMPLETED:
            return self.requested
        return max(self.dispensed - 1, 0)
