from __future__ import annotations

from tenacity.wait import wait_base


class DeterministicExponentialBackoff(wait_base):
    """
    0, base, 2*base, 4*base ... capped. No jitter, so runs are reproducible.
    """

    def __init__(self, *, base: float = 0.5, cap: float = 4.0) -> None:
        self._base = float(base)
        self._cap = float(cap)

    def __call__(self, retry_state) -> float:
        n = retry_state.attempt_number
        if n <= 1:
            return 0.0
        return min(self._cap, self._base * (2 ** (n - 2)))
