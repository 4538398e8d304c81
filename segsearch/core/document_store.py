"""
Documents and the single-owner document store.
"""

from typing import Any, Dict, Iterator, List, Optional
from dataclasses import dataclass

from ..errors import MalformedInputError, SegmentFrozenError

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class Document:
    """
    A source document.

    Instances are immutable, so the store can hand the same object to any
    number of readers.

    Attributes:
        id: Unique document identifier (64-bit signed integer)
        text: Raw document text
    """
    id: int
    text: str

    def __post_init__(self):
        # bool is an int subclass but never a meaningful id
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise MalformedInputError(f"Document id must be an integer, got {self.id!r}")
        if not INT64_MIN <= self.id <= INT64_MAX:
            raise MalformedInputError(f"Document id {self.id} is outside the 64-bit range")
        if not isinstance(self.text, str):
            raise MalformedInputError(
                f"Document {self.id} text must be a string, got {type(self.text).__name__}"
            )

    @classmethod
    def coerce(cls, value: Any) -> 'Document':
        """
        Build a Document from a Document, an {'id', 'text'} mapping or an
        (id, text) pair.

        Raises:
            MalformedInputError: If the value has no usable id or text
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            if 'id' not in value:
                raise MalformedInputError(f"Document is missing an id: {value!r}")
            return cls(id=value['id'], text=value.get('text'))
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(id=value[0], text=value[1])
        raise MalformedInputError(f"Cannot interpret {value!r} as a document")

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {'id': self.id, 'text': self.text}

    @classmethod
    def from_dict(cls, data: dict) -> 'Document':
        """Create from dictionary."""
        return cls.coerce(data)


class DocumentStore:
    """
    Maps document id to its Document.
    Separate from the term dictionary; used for scoring (N) and hydration.
    """

    def __init__(self):
        """Initialize document store."""
        self._documents: Dict[int, Document] = {}
        self._frozen = False

    def put(self, document: Document) -> Optional[Document]:
        """
        Store a document, replacing any previous document with the same id.

        Args:
            document: Document to store

        Returns:
            The replaced document, or None
        """
        if self._frozen:
            raise SegmentFrozenError("Document store is frozen")
        previous = self._documents.get(document.id)
        self._documents[document.id] = document
        return previous

    def get(self, doc_id: int) -> Optional[Document]:
        """Get document by id."""
        return self._documents.get(doc_id)

    def freeze(self):
        self._frozen = True

    def ids(self) -> List[int]:
        """Get all document ids in ascending order."""
        return sorted(self._documents)

    def documents(self) -> Iterator[Document]:
        """Iterate documents in ascending id order."""
        for doc_id in self.ids():
            yield self._documents[doc_id]

    def __contains__(self, doc_id: int) -> bool:
        return doc_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {'documents': [doc.to_dict() for doc in self.documents()]}

    @classmethod
    def from_dict(cls, data: dict) -> 'DocumentStore':
        """Create from dictionary."""
        store = cls()
        for item in data['documents']:
            store.put(Document.from_dict(item))
        return store
