"""
segsearch - single-segment inverted index with conjunctive TF-IDF search.
"""

from .core import (
    Document,
    DocumentStore,
    IndexBuilder,
    PostingList,
    PostingNode,
    QueryEngine,
    Segment,
    SegmentSerializer,
    TermDictionary,
    TopKDoc,
)
from .preprocessing.tokenizer import NltkTokenizer, Tokenizer, WhitespaceTokenizer, build_tokenizer

__version__ = "0.1.0"

__all__ = [
    'Document',
    'DocumentStore',
    'IndexBuilder',
    'PostingList',
    'PostingNode',
    'QueryEngine',
    'Segment',
    'SegmentSerializer',
    'TermDictionary',
    'TopKDoc',
    'Tokenizer',
    'WhitespaceTokenizer',
    'NltkTokenizer',
    'build_tokenizer',
]
