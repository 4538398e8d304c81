"""
Query engine: conjunctive TF-IDF ranked retrieval over a frozen Segment.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
import logging
import time

from .document_store import Document
from .intersection import PostingsCursor, intersect
from .scoring import score
from .segment import Segment
from .topk import TopKDoc, TopKSelector
from ..errors import SegmentNotFrozenError
from ..preprocessing.tokenizer import Tokenizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchHit:
    """A ranked result hydrated with its document."""
    rank: int
    doc_id: int
    score: float
    document: Optional[Document]

    def to_dict(self) -> dict:
        return {
            'rank': self.rank,
            'doc_id': self.doc_id,
            'score': self.score,
            'text': self.document.text if self.document else None,
        }


class QueryEngine:
    """
    Evaluates AND queries against a frozen segment.

    Every distinct query token must occur in a document for it to match.
    Matches are scored by summing tf * log2(N / df) over the query terms and
    the k best are returned. The intersection always runs to exhaustion
    before ranking, since matches surface in doc id order rather than score
    order.
    """

    def __init__(self, segment: Segment, tokenizer: Optional[Tokenizer] = None,
                 max_steps: Optional[int] = None):
        """
        Initialize query engine.

        Args:
            segment: Frozen segment to query
            tokenizer: Query tokenizer; defaults to the segment's own
            max_steps: Optional step budget for the intersection loop

        Raises:
            SegmentNotFrozenError: If the segment is still being built
        """
        if not segment.frozen:
            raise SegmentNotFrozenError("Segment must be frozen before it can be queried")
        self.segment = segment
        self.tokenizer = tokenizer or segment.tokenizer
        self.max_steps = max_steps

    def query_terms(self, query: str) -> List[str]:
        """Distinct query tokens in first-occurrence order."""
        seen = {}
        for token, _ in self.tokenizer.tokenize(query):
            seen.setdefault(token, None)
        return list(seen)

    def _open_cursors(self, terms: List[str]) -> Optional[List[PostingsCursor]]:
        """One cursor per term, rarest first; None if any term is unknown."""
        cursors = []
        for term in terms:
            postings = self.segment.lookup(term)
            if not postings:
                logger.debug(f"Term {term!r} has no postings; query cannot match")
                return None
            cursors.append(PostingsCursor(term, postings))
        cursors.sort(key=lambda c: c.document_frequency())
        return cursors

    def matching_documents(self, query: str) -> Iterator[Tuple[int, float]]:
        """
        Every document matching all query terms, in ascending doc id order.

        Yields:
            (doc_id, tf-idf score)
        """
        terms = self.query_terms(query)
        if not terms:
            return

        cursors = self._open_cursors(terms)
        if cursors is None:
            return

        total_documents = self.segment.total_documents
        dfs = [c.document_frequency() for c in cursors]

        for doc_id, frequencies in intersect(cursors, max_steps=self.max_steps):
            yield doc_id, sum(score(tf, df, total_documents) for tf, df in zip(frequencies, dfs))

    def search(self, query: str, k: int = 10) -> List[TopKDoc]:
        """
        Run a query.

        Args:
            query: Raw query text
            k: Maximum number of results

        Returns:
            Up to k TopKDoc ordered by score descending, then id ascending.
            Empty for an empty query or when any term is unknown.
        """
        start_time = time.time()

        selector = TopKSelector(k)
        matched = 0
        for doc_id, doc_score in self.matching_documents(query):
            selector.offer(doc_id, doc_score)
            matched += 1
        results = selector.drain()

        logger.debug(f"Query {query!r}: {matched} matches, returned {len(results)} "
                     f"in {time.time() - start_time:.4f}s")
        return results

    def search_hits(self, query: str, k: int = 10) -> List[SearchHit]:
        """Like `search`, with each result hydrated from the document store."""
        return [
            SearchHit(rank=rank, doc_id=result.id, score=result.score,
                      document=self.segment.get_document(result.id))
            for rank, result in enumerate(self.search(query, k), 1)
        ]
