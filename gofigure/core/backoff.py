"""
Mesh poll timing rules.

Backoff is keyed on total elapsed time since polling started, never on an
iteration counter, so a late-fired task still computes the right delay and
the timeout check stays exact.

Dependencies: None
System role: Pure timing functions for the mesh poll loop
"""

MINUTE_MS = 60 * 1000

# Absolute ceiling for one mesh task, checked before every poll.
MAX_POLLING_TIME_MS = 60 * MINUTE_MS

# Status-query failures inside this window are treated as transient.
TRANSIENT_ERROR_GRACE_MS = 10 * MINUTE_MS

# (elapsed upper bound in ms, delay in seconds); the last row has no bound.
BACKOFF_SCHEDULE: tuple[tuple[int | None, int], ...] = (
    (5 * MINUTE_MS, 5),
    (10 * MINUTE_MS, 15),
    (30 * MINUTE_MS, 60),
    (None, 300),
)


def next_interval(elapsed_ms: int) -> int:
    """
    Return the delay before the next poll, in seconds.

    Args:
        elapsed_ms: Milliseconds since polling started

    Returns:
        int: 5s under 5 min, 15s under 10 min, 60s under 30 min, 300s after
    """
    for upper_bound, delay in BACKOFF_SCHEDULE:
        if upper_bound is None or elapsed_ms < upper_bound:
            return delay
    raise AssertionError("unreachable: backoff schedule has an open last row")


def is_timed_out(elapsed_ms: int) -> bool:
    """Whether polling has run past the absolute ceiling."""
    return elapsed_ms > MAX_POLLING_TIME_MS


def is_within_transient_grace(elapsed_ms: int) -> bool:
    """Whether a failed status query should be retried instead of failing the job."""
    return elapsed_ms <= TRANSIENT_ERROR_GRACE_MS
