"""
Segment: one term dictionary plus one document store, built once and then
frozen for querying.
"""

from collections import Counter
from enum import Enum, auto
from typing import Dict, Iterable, Optional, Sequence
import logging

from .document_store import Document, DocumentStore
from .postings import PostingList
from .term_dictionary import TermDictionary
from ..errors import DuplicateDocumentIdError, SegmentFrozenError
from ..preprocessing.tokenizer import Token, Tokenizer, WhitespaceTokenizer

logger = logging.getLogger(__name__)


class SegmentState(Enum):
    BUILDING = auto()  # Accepting documents
    FROZEN = auto()  # Read-only, queryable


class DuplicatePolicy(Enum):
    """What to do when a document id is added twice."""
    REJECT = 'reject'
    REPLACE = 'replace'  # Retract the old document's postings, then index the new one


class Segment:
    """
    The unit of build-then-query.

    Created empty in BUILDING state, filled through `add_document`, then
    `freeze()`-d. A frozen segment is never mutated again and can be shared
    by any number of concurrent readers.
    """

    def __init__(self, tokenizer: Optional[Tokenizer] = None,
                 on_duplicate=DuplicatePolicy.REJECT):
        """
        Initialize segment.

        Args:
            tokenizer: Tokenizer used for indexing (whitespace by default)
            on_duplicate: DuplicatePolicy or its string value
        """
        self.tokenizer = tokenizer or WhitespaceTokenizer()
        self.on_duplicate = DuplicatePolicy(on_duplicate)
        self.dictionary = TermDictionary()
        self.documents = DocumentStore()
        self.state = SegmentState.BUILDING
        self.total_tokens = 0
        # Indexed token counts per document, kept only while building
        self._indexed: Dict[int, Counter] = {}

    @property
    def frozen(self) -> bool:
        return self.state == SegmentState.FROZEN

    def add_document(self, document: Document, tokens: Optional[Sequence[Token]] = None):
        """
        Index one document.

        Args:
            document: Document to add
            tokens: Pre-tokenized text; tokenized with `self.tokenizer` when None

        Raises:
            SegmentFrozenError: If the segment is frozen
            DuplicateDocumentIdError: If the id exists and the policy is REJECT
        """
        if self.frozen:
            raise SegmentFrozenError("Cannot add documents to a frozen segment")

        previous = self.documents.get(document.id)
        if previous is not None:
            if self.on_duplicate == DuplicatePolicy.REJECT:
                raise DuplicateDocumentIdError(document.id)
            logger.debug(f"Replacing document {document.id}")
            self._retract(previous.id)

        if tokens is None:
            tokens = self.tokenizer.tokenize(document.text)

        self.documents.put(document)

        # One upsert per distinct token; order within a document is irrelevant
        counts = Counter(token for token, _ in tokens)
        self._indexed[document.id] = counts
        doc_id = document.id
        for token, count in counts.items():
            self.dictionary.upsert(token, lambda postings, c=count: postings.add_occurrence(doc_id, c))

        self.total_tokens += len(tokens)

    def _retract(self, doc_id: int):
        """Remove every posting the given document contributed."""
        counts = self._indexed.pop(doc_id)
        for token, count in counts.items():
            self.dictionary.upsert(token, lambda postings, c=count: postings.remove_occurrences(doc_id, c))
        self.total_tokens -= sum(counts.values())

    def add_documents(self, documents: Iterable[Document]):
        for document in documents:
            self.add_document(document)

    def freeze(self) -> 'Segment':
        """Seal the segment for querying. Idempotent."""
        if not self.frozen:
            self.dictionary.freeze()
            self.documents.freeze()
            self._indexed = {}
            self.state = SegmentState.FROZEN
            logger.info(f"Segment frozen: {len(self.documents)} documents, "
                        f"{len(self.dictionary)} terms")
        return self

    def lookup(self, token: str) -> Optional[PostingList]:
        return self.dictionary.lookup(token)

    def get_document(self, doc_id: int) -> Optional[Document]:
        return self.documents.get(doc_id)

    def document_frequency(self, token: str) -> int:
        postings = self.lookup(token)
        return postings.document_frequency() if postings else 0

    @property
    def total_documents(self) -> int:
        return len(self.documents)

    def get_statistics(self) -> Dict:
        """Get segment statistics."""
        num_docs = self.total_documents
        return {
            'state': self.state.name,
            'num_documents': num_docs,
            'total_tokens': self.total_tokens,
            'avg_document_length': self.total_tokens / num_docs if num_docs > 0 else 0,
            **self.dictionary.get_statistics()
        }
