"""
Seeded random source shared by every random decision in a game.
"""
import random
import uuid
from typing import List, Sequence, TypeVar

T = TypeVar("T")


class GameRng:
    """One reproducible random stream per game."""

    def __init__(self, seed: int | str | None = None):
        """
        Initialize the stream.

        Args:
            seed: Optional seed for reproducible games; a random one is
                generated (and kept for reporting) when omitted
        """
        if seed is None:
            seed = uuid.uuid4().hex[:12]
        self.seed = seed
        self.position = 0
        self._random = random.Random(seed)

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        self.position += 1
        return self._random.random()

    def randbelow(self, n: int) -> int:
        """Uniform integer in [0, n)."""
        if n <= 0:
            raise ValueError("n must be > 0")
        self.position += 1
        return self._random.randrange(n)

    def choice(self, seq: Sequence[T]) -> T:
        """Pick one element uniformly."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.randbelow(len(seq))]

    def shuffle(self, seq: Sequence[T]) -> List[T]:
        """
        Fisher-Yates shuffle.

        Returns:
            A new shuffled list; the input is left untouched
        """
        items = list(seq)
        for i in range(len(items) - 1, 0, -1):
            j = self.randbelow(i + 1)
            items[i], items[j] = items[j], items[i]
        return items

    def sample(self, seq: Sequence[T], k: int) -> List[T]:
        """Pick up to k distinct elements, in selection order."""
        pool = list(seq)
        picked = []
        for _ in range(min(max(k, 0), len(pool))):
            picked.append(pool.pop(self.randbelow(len(pool))))
        return picked

    def state(self) -> dict:
        """Inspectable position in the stream."""
        return {"seed": self.seed, "position": self.position}

    def to_dict(self) -> dict:
        """Full generator state for snapshots."""
        version, internal, gauss_next = self._random.getstate()
        return {
            "seed": self.seed,
            "position": self.position,
            "state": [version, list(internal), gauss_next],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameRng":
        """Restore a stream so it continues exactly where it stopped."""
        rng = cls(data["seed"])
        rng.position = data.get("position", 0)
        if data.get("state"):
            version, internal, gauss_next = data["state"]
            rng._random.setstate((version, tuple(internal), gauss_next))
        return rng
