"""
Single-segment inverted index: build, intersect, score, rank.
"""

from .postings import PostingNode, PostingList
from .term_dictionary import TermDictionary
from .document_store import Document, DocumentStore
from .segment import Segment, SegmentState, DuplicatePolicy
from .builder import IndexBuilder
from .intersection import PostingsCursor, intersect
from .scoring import score
from .topk import TopKDoc, TopKSelector, select
from .query_engine import QueryEngine, SearchHit
from .serialization import SegmentSerializer

__all__ = [
    'PostingNode',
    'PostingList',
    'TermDictionary',
    'Document',
    'DocumentStore',
    'Segment',
    'SegmentState',
    'DuplicatePolicy',
    'IndexBuilder',

    'PostingsCursor',
    'intersect',
    'score',
    'TopKDoc',
    'TopKSelector',
    'select',
    'QueryEngine',
    'SearchHit',
    'SegmentSerializer',
]
