"""
Postings list data structures for the segment index.
"""

from typing import Iterator, List, Optional
from dataclasses import dataclass
import bisect

from ..errors import SegmentFrozenError


@dataclass(frozen=True)
class PostingNode:
    """
    Single posting for a term in a document.

    Attributes:
        doc_id: Document identifier
        term_frequency: Number of times the term appears in the document (>= 1)
    """
    doc_id: int
    term_frequency: int = 1

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'doc_id': self.doc_id,
            'term_frequency': self.term_frequency
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PostingNode':
        """Create from dictionary."""
        return cls(doc_id=data['doc_id'], term_frequency=data['term_frequency'])


class PostingList:
    """
    Postings list for a single term.

    Doc ids are kept strictly ascending with at most one entry per document,
    whatever order documents arrive in. Ids and frequencies are stored in
    parallel arrays so cursors can binary-search the ids directly.
    """

    def __init__(self):
        """Initialize empty postings list."""
        self._doc_ids: List[int] = []
        self._freqs: List[int] = []
        self._frozen = False

    def _check_mutable(self):
        if self._frozen:
            raise SegmentFrozenError("Postings list is frozen")

    def add_occurrence(self, doc_id: int, count: int = 1):
        """
        Record `count` occurrences of the term in a document.

        Increments the existing entry for `doc_id`, or inserts a new entry at
        its sorted position.

        Args:
            doc_id: Document identifier
            count: Number of occurrences to add (>= 1)
        """
        self._check_mutable()
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")

        # Fast path: ascending ingestion appends at the tail
        if not self._doc_ids or self._doc_ids[-1] < doc_id:
            self._doc_ids.append(doc_id)
            self._freqs.append(count)
            return

        idx = bisect.bisect_left(self._doc_ids, doc_id)
        if idx < len(self._doc_ids) and self._doc_ids[idx] == doc_id:
            self._freqs[idx] += count
        else:
            self._doc_ids.insert(idx, doc_id)
            self._freqs.insert(idx, count)

    def remove_occurrences(self, doc_id: int, count: Optional[int] = None):
        """
        Retract occurrences of the term from a document.

        Args:
            doc_id: Document identifier
            count: Occurrences to remove; None removes the whole entry

        Returns:
            True if an entry for `doc_id` existed
        """
        self._check_mutable()
        idx = bisect.bisect_left(self._doc_ids, doc_id)
        if idx >= len(self._doc_ids) or self._doc_ids[idx] != doc_id:
            return False

        if count is None or count >= self._freqs[idx]:
            del self._doc_ids[idx]
            del self._freqs[idx]
        else:
            self._freqs[idx] -= count
        return True

    def freeze(self):
        """Reject all further mutation."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, doc_id: int) -> Optional[PostingNode]:
        """
        Get the posting for a specific document.

        Args:
            doc_id: Document identifier

        Returns:
            PostingNode if found, None otherwise
        """
        idx = bisect.bisect_left(self._doc_ids, doc_id)
        if idx < len(self._doc_ids) and self._doc_ids[idx] == doc_id:
            return PostingNode(doc_id, self._freqs[idx])
        return None

    def get_term_frequency(self, doc_id: int) -> int:
        """Get term frequency in a specific document (0 if absent)."""
        posting = self.get(doc_id)
        return posting.term_frequency if posting else 0

    def seek(self, doc_id: int, start: int = 0) -> int:
        """
        Find the first position at or after `start` whose doc id is >= `doc_id`.

        Returns len(self) when no such position exists.
        """
        return bisect.bisect_left(self._doc_ids, doc_id, start)

    def doc_id_at(self, position: int) -> int:
        return self._doc_ids[position]

    def frequency_at(self, position: int) -> int:
        return self._freqs[position]

    def doc_ids(self) -> List[int]:
        """Get list of all document IDs containing this term."""
        return list(self._doc_ids)

    def frequencies(self) -> List[int]:
        return list(self._freqs)

    def document_frequency(self) -> int:
        """Get number of documents containing this term."""
        return len(self._doc_ids)

    def total_term_frequency(self) -> int:
        """Get total occurrences of term across all documents."""
        return sum(self._freqs)

    def __len__(self) -> int:
        return len(self._doc_ids)

    def __bool__(self) -> bool:
        return bool(self._doc_ids)

    def __iter__(self) -> Iterator[PostingNode]:
        for doc_id, freq in zip(self._doc_ids, self._freqs):
            yield PostingNode(doc_id, freq)

    def __getitem__(self, position: int) -> PostingNode:
        return PostingNode(self._doc_ids[position], self._freqs[position])

    def __repr__(self):
        return f"PostingList(df={len(self)}, doc_ids={self._doc_ids[:8]}{'...' if len(self) > 8 else ''})"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'postings': [p.to_dict() for p in self],
            'df': self.document_frequency(),
            'total_tf': self.total_term_frequency()
        }

    @classmethod
    def from_pairs(cls, doc_ids: List[int], frequencies: List[int]) -> 'PostingList':
        """
        Create from already-sorted parallel arrays.

        Raises:
            ValueError: If the arrays differ in length, ids are not strictly
                ascending, or a frequency is < 1
        """
        if len(doc_ids) != len(frequencies):
            raise ValueError("doc_ids and frequencies must have the same length")
        for i in range(1, len(doc_ids)):
            if doc_ids[i] <= doc_ids[i - 1]:
                raise ValueError("doc_ids must be strictly ascending")
        if any(f < 1 for f in frequencies):
            raise ValueError("term frequencies must be >= 1")

        pl = cls()
        pl._doc_ids = list(doc_ids)
        pl._freqs = list(frequencies)
        return pl

    @classmethod
    def from_dict(cls, data: dict) -> 'PostingList':
        """Create from dictionary."""
        nodes = [PostingNode.from_dict(p) for p in data['postings']]
        return cls.from_pairs([n.doc_id for n in nodes], [n.term_frequency for n in nodes])
