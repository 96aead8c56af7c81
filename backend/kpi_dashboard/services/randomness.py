import random


class Jitter:
    """Single source of the synthetic noise used across the dashboard.

    Pass a seed to get repeatable output (tests, snapshot reports).
    """

    def __init__(self, seed: int | None = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def scaled(self, span: float) -> float:
        return self._rng.random() * span

    def up_to(self, span: int) -> int:
        # 0..span inclusive.
        return int(round(self._rng.random() * span))
