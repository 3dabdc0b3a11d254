import signal
import time
from enum import Enum
from typing import Callable, Optional


EXIT_CONFIRM_WINDOW = 3.0


class InterruptAction(str, Enum):
    ARMED = "armed"
    EXIT = "exit"


class ExitGuard:
    """
    Two-stage interrupt handling.

    The first interrupt arms an exit confirmation that expires after
    ``window`` seconds; a second interrupt before it expires means exit.
    """

    def __init__(self, window: float = EXIT_CONFIRM_WINDOW, clock: Callable[[], float] = time.monotonic):
        self.window = window
        self.clock = clock
        self._armed_until: Optional[float] = None

    @property
    def is_armed(self) -> bool:
        return self._armed_until is not None and self.clock() < self._armed_until

    def handle_interrupt(self) -> InterruptAction:
        if self.is_armed:
            self._armed_until = None
            return InterruptAction.EXIT
        self._armed_until = self.clock() + self.window
        return InterruptAction.ARMED

    def disarm(self) -> None:
        self._armed_until = None

    def install(self, on_armed: Callable[[], None], on_exit: Callable[[], None]) -> None:
        """Route SIGINT through this guard."""

        def _handler(signum, frame):
            if self.handle_interrupt() is InterruptAction.EXIT:
                on_exit()
            else:
                on_armed()

        signal.signal(signal.SIGINT, _handler)
