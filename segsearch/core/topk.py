"""
Bounded top-k selection.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple
import heapq


@dataclass(frozen=True)
class TopKDoc:
    """
    A ranked result.

    Ordering: score descending, ties broken by id ascending. Sorting a list
    of TopKDoc puts the best result first.
    """
    id: int
    score: float

    @property
    def sort_key(self) -> Tuple[float, int]:
        return (-self.score, self.id)

    def __lt__(self, other: 'TopKDoc') -> bool:
        return self.sort_key < other.sort_key

    def __repr__(self):
        return f"TopKDoc(id={self.id}, score={self.score:.4f})"

    def to_dict(self) -> dict:
        return {'doc_id': self.id, 'score': self.score}


class TopKSelector:
    """
    Keeps the k best candidates seen so far.

    Backed by a min-heap of (score, -doc_id) so the root is always the
    entry that would be evicted first: the lowest score, and among equal
    scores the highest id.
    """

    def __init__(self, k: int):
        """
        Args:
            k: Maximum number of results to keep

        Raises:
            ValueError: If k is negative
        """
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        self.k = k
        self._heap: List[Tuple[float, int]] = []

    def offer(self, doc_id: int, score: float) -> bool:
        """
        Consider a candidate.

        Returns:
            True if the candidate is now held
        """
        if self.k == 0:
            return False

        entry = (score, -doc_id)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
            return True

        if entry > self._heap[0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def min_score(self) -> float:
        """Lowest score currently held (only meaningful when not empty)."""
        return self._heap[0][0]

    def __len__(self) -> int:
        return len(self._heap)

    def drain(self) -> List[TopKDoc]:
        """Return the held entries best-first and reset the selector."""
        results = sorted(TopKDoc(id=-neg_id, score=score) for score, neg_id in self._heap)
        self._heap = []
        return results


def select(candidates: Iterable[Tuple[int, float]], k: int) -> List[TopKDoc]:
    """
    Select the k best (doc_id, score) candidates.

    Args:
        candidates: Iterable of (doc_id, score) pairs
        k: Maximum number of results

    Returns:
        At most k TopKDoc, ordered by score descending then id ascending
    """
    selector = TopKSelector(k)
    for doc_id, doc_score in candidates:
        selector.offer(doc_id, doc_score)
    return selector.drain()
