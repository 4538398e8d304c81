"""
Exceptions raised by the segment index and its collaborators.
"""


class SegsearchError(Exception):
    """Base class for all segsearch errors."""


class MalformedInputError(SegsearchError, ValueError):
    """A caller-supplied document has a missing or invalid id or text."""


class DuplicateDocumentIdError(SegsearchError, ValueError):
    """A document id is already present in the segment."""

    def __init__(self, doc_id: int):
        super().__init__(f"Document id {doc_id} is already indexed")
        self.doc_id = doc_id


class SegmentFrozenError(SegsearchError, RuntimeError):
    """Attempt to mutate a segment (or one of its parts) after it was frozen."""


class SegmentNotFrozenError(SegsearchError, RuntimeError):
    """Attempt to query a segment that is still being built."""


class QueryBudgetExceededError(SegsearchError, RuntimeError):
    """The intersection loop ran past its configured step budget."""

    def __init__(self, max_steps: int):
        super().__init__(f"Query exceeded step budget of {max_steps}")
        self.max_steps = max_steps


class IndexNotFoundError(SegsearchError, FileNotFoundError):
    """No stored index exists at the requested location."""
