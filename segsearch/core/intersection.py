"""
Document-at-a-time conjunctive intersection over sorted postings lists.
"""

from typing import Iterator, List, Optional, Tuple

from .postings import PostingList
from ..errors import QueryBudgetExceededError


class PostingsCursor:
    """
    Cursor over one term's postings.

    State is a position into the list; the cursor is exhausted once the
    position runs past the end.
    """

    __slots__ = ("term", "postings", "position")

    def __init__(self, term: str, postings: PostingList):
        self.term = term
        self.postings = postings
        self.position = 0

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self.postings)

    def doc_id(self) -> Optional[int]:
        """Current doc id, or None once exhausted."""
        if self.exhausted:
            return None
        return self.postings.doc_id_at(self.position)

    def term_frequency(self) -> int:
        return self.postings.frequency_at(self.position)

    def document_frequency(self) -> int:
        return len(self.postings)

    def next_ge(self, target: int) -> Optional[int]:
        """
        Skip forward to the first posting with doc id >= target.

        Returns:
            The new current doc id, or None if the list is exhausted
        """
        self.position = self.postings.seek(target, self.position)
        return self.doc_id()

    def advance(self) -> Optional[int]:
        """Move one posting forward."""
        self.position += 1
        return self.doc_id()

    def __repr__(self):
        return f"PostingsCursor(term={self.term!r}, position={self.position}/{len(self.postings)})"


def intersect(cursors: List[PostingsCursor],
              max_steps: Optional[int] = None) -> Iterator[Tuple[int, List[int]]]:
    """
    DAAT intersection (AND) over multiple postings cursors.

    Strategy:
      - Take the maximum of the current doc ids as the target.
      - Skip every lagging cursor to the first doc id >= target.
      - When all cursors agree, emit the match and move all of them by one.
      - Stop as soon as any cursor is exhausted: no later document can
        appear in every list.

    Matches come out in ascending doc id order.

    Args:
        cursors: One cursor per query term
        max_steps: Optional bound on loop iterations

    Yields:
        (doc_id, term frequencies in cursor order)

    Raises:
        QueryBudgetExceededError: If max_steps iterations pass before the scan ends
    """
    if not cursors:
        return

    heads = [cur.doc_id() for cur in cursors]
    if any(h is None for h in heads):
        return

    steps = 0
    while True:
        steps += 1
        if max_steps is not None and steps > max_steps:
            raise QueryBudgetExceededError(max_steps)

        target = max(heads)
        aligned = True
        for i, cur in enumerate(cursors):
            if heads[i] < target:
                nxt = cur.next_ge(target)
                if nxt is None:
                    return
                heads[i] = nxt
                if nxt != target:
                    aligned = False

        if not aligned:
            continue

        yield target, [cur.term_frequency() for cur in cursors]

        for i, cur in enumerate(cursors):
            nxt = cur.advance()
            if nxt is None:
                return
            heads[i] = nxt
