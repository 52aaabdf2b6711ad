# src/filereg/context.py
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from filereg.errors import RequestCancelled


@dataclass
class CallContext:
    """Per-request cancellation scope.

    deadline is a time.monotonic() value; None means no deadline.
    request_id ties core log events to the HTTP request that caused them.
    """

    deadline: Optional[float] = None
    request_id: str = ""
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def background(cls) -> "CallContext":
        return cls()

    @classmethod
    def with_timeout(cls, timeout_s: Optional[float], *, request_id: str = "") -> "CallContext":
        if timeout_s is None or timeout_s <= 0:
            return cls(request_id=request_id)
        return cls(deadline=time.monotonic() + float(timeout_s), request_id=request_id)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, 0.0 once past it, None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self, stage: str = "") -> None:
        if self._cancelled.is_set():
            raise RequestCancelled("request cancelled", details={"stage": stage})
        rem = self.remaining()
        if rem is not None and rem <= 0.0:
            raise RequestCancelled("request deadline exceeded", details={"stage": stage})
