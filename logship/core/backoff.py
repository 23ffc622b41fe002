"""
ExponentialBackoffSchedule — how long the shipping loop waits between ticks.

While the endpoint is healthy the loop ticks every `period`. Each consecutive
failure doubles the wait, starting from max(period, minimum_backoff) and
capped at maximum_backoff:

  failures  wait (period=2s, minimum=5s, maximum=10min)
  0         2s
  1         5s
  2         10s
  3         20s
  ...
  8+        10min

A single success resets the schedule.
"""

from __future__ import annotations

import dataclasses
from datetime import timedelta


@dataclasses.dataclass
class ExponentialBackoffSchedule:
    """
    Connection schedule consulted by the shipping loop after every tick.

    Parameters
    ----------
    period          : base shipping interval
    minimum_backoff : first wait after a failure (never shorter than period)
    maximum_backoff : cap on the wait
    """

    period: timedelta
    minimum_backoff: timedelta = timedelta(seconds=5)
    maximum_backoff: timedelta = timedelta(minutes=10)

    failures_since_success: int = dataclasses.field(default=0, init=False)

    def mark_success(self) -> None:
        self.failures_since_success = 0

    def mark_failure(self) -> None:
        self.failures_since_success += 1

    @property
    def next_interval(self) -> timedelta:
        if self.failures_since_success == 0:
            return self.period

        backoff_factor = 2 ** (self.failures_since_success - 1)
        backoff_period = max(self.period, self.minimum_backoff)
        # Clamp the exponent before multiplying; timedelta overflows past ~10^9 days.
        backed_off = backoff_period * min(backoff_factor, 2**20)
        capped = min(self.maximum_backoff, backed_off)
        return max(self.period, capped)
