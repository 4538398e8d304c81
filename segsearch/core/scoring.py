"""
TF-IDF scoring.
"""

import math


def score(term_frequency: int, document_frequency: int, total_documents: int) -> float:
    """
    TF-IDF contribution of one term to one document.

    score = tf * log2(N / df)

    A term present in every document (df == N) contributes 0. No length
    normalization is applied.

    Args:
        term_frequency: Occurrences of the term in the document
        document_frequency: Number of documents containing the term
        total_documents: Number of documents in the segment

    Returns:
        TF-IDF score (0.0 when the term has no postings)
    """
    if document_frequency == 0:
        return 0.0
    return term_frequency * math.log2(total_documents / document_frequency)
