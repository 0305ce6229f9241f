"""
Reconnect policy for the reconnecting WebSocket client.

The policy owns the attempt counter and answers one question: after a
connection loss, is another attempt allowed, and after what delay? The
counter is reset only by a caller-issued connect(), so consecutive failures
accumulate toward the cap even across internal reconnects.
"""

from typing import Optional

SUPPRESSED = -1


class ReconnectPolicy:
    """
    Fixed-delay reconnect policy with an optional attempt cap.

    Counter states:
    - ``SUPPRESSED`` (-1): an explicit disconnect was issued; never reconnect
    - ``0..max``: evaluating or scheduled
    - ``> max``: exhausted until reset
    """

    def __init__(self, max_attempts: Optional[int], delay_ms: int) -> None:
        """
        Args:
            max_attempts: Maximum consecutive reconnects, or None for unbounded
            delay_ms: Fixed delay between a connection loss and the next attempt
        """
        self._max_attempts = max_attempts
        self._delay_ms = delay_ms
        self._attempts = 0

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def max_attempts(self) -> Optional[int]:
        return self._max_attempts

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def suppressed(self) -> bool:
        return self._attempts == SUPPRESSED

    @property
    def exhausted(self) -> bool:
        return (
            not self.suppressed
            and self._max_attempts is not None
            and self._attempts > self._max_attempts
        )

    def reset(self) -> None:
        self._attempts = 0

    def suppress(self) -> None:
        self._attempts = SUPPRESSED

    def record_failure(self) -> int:
        """
        Count one connection loss.

        Returns:
            int: The new counter value
        """
        if self.suppressed:
            raise RuntimeError("Cannot record a failure while reconnects are suppressed")
        self._attempts += 1
        return self._attempts

    def should_retry(self) -> bool:
        """Whether the failure just recorded may be followed by a reconnect."""
        if self.suppressed:
            return False
        return self._max_attempts is None or self._attempts <= self._max_attempts
