"""Index implementations."""

from .segment_index import SegmentIndex

__all__ = ['SegmentIndex']
