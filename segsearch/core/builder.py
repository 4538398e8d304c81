"""
Index builder: turns a document collection into a frozen Segment.
"""

from typing import Any, Iterable, Optional
import logging
import time

from .document_store import Document
from .segment import DuplicatePolicy, Segment
from ..preprocessing.tokenizer import Tokenizer

logger = logging.getLogger(__name__)


class IndexBuilder:
    """
    Builds a Segment from documents.

    Sample usage:
        segment = IndexBuilder().build([Document(1, "hello world")])

    For streaming input use `add()` repeatedly and then `finish()`.
    """

    def __init__(self, tokenizer: Optional[Tokenizer] = None,
                 on_duplicate=DuplicatePolicy.REJECT):
        """
        Initialize builder.

        Args:
            tokenizer: Tokenizer applied to every document (whitespace by default)
            on_duplicate: 'reject' (raise DuplicateDocumentIdError) or 'replace'
        """
        self.tokenizer = tokenizer
        self.on_duplicate = DuplicatePolicy(on_duplicate)
        self._segment: Optional[Segment] = None
        self._start_time = 0.0

    def _current(self) -> Segment:
        if self._segment is None:
            self._segment = Segment(tokenizer=self.tokenizer, on_duplicate=self.on_duplicate)
            self._start_time = time.time()
        return self._segment

    def add(self, document: Any) -> None:
        """
        Add one document to the segment under construction.

        Args:
            document: Document, {'id', 'text'} mapping or (id, text) pair

        Raises:
            MalformedInputError: If the document has no valid id or text
            DuplicateDocumentIdError: If the id repeats under the reject policy
        """
        self._current().add_document(Document.coerce(document))

    def add_all(self, documents: Iterable[Any]) -> None:
        segment = self._current()
        for count, document in enumerate(documents, 1):
            segment.add_document(Document.coerce(document))
            if count % 10000 == 0:
                logger.info(f"Indexed {count} documents...")

    def finish(self) -> Segment:
        """Freeze and return the segment; the builder starts fresh afterwards."""
        segment = self._current()
        self._segment = None
        segment.freeze()

        duration = time.time() - self._start_time
        logger.info(f"Built segment with {segment.total_documents} documents and "
                    f"{len(segment.dictionary)} terms in {duration:.2f}s")
        return segment

    def build(self, documents: Iterable[Any]) -> Segment:
        """
        Build a frozen Segment from a document collection.

        Args:
            documents: Iterable of Documents (or coercible values)

        Returns:
            Frozen Segment reflecting the whole collection
        """
        self._segment = None
        self.add_all(documents)
        return self.finish()
