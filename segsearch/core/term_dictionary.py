"""
Term dictionary: prefix tree mapping tokens to their postings lists.
"""

from typing import Callable, Dict, Iterator, List, Optional, Tuple
import logging

from .postings import PostingList
from ..errors import SegmentFrozenError

logger = logging.getLogger(__name__)

ROOT = 0


class TermDictionary:
    """
    Prefix tree over token characters, stored as an arena of nodes.

    Node `i` owns `self._children[i]` (character -> child node index) and
    `self._values[i]` (the term's PostingList, or None when no term ends at
    that node). Node 0 is the root and represents the empty token.
    """

    def __init__(self):
        self._children: List[Dict[str, int]] = [{}]
        self._values: List[Optional[PostingList]] = [None]
        self._num_terms = 0
        self._frozen = False

    def _find_node(self, token: str) -> Optional[int]:
        node = ROOT
        for char in token:
            node = self._children[node].get(char)
            if node is None:
                return None
        return node

    def _find_or_create_node(self, token: str) -> int:
        node = ROOT
        for char in token:
            child = self._children[node].get(char)
            if child is None:
                child = len(self._children)
                self._children.append({})
                self._values.append(None)
                self._children[node][char] = child
            node = child
        return node

    def lookup(self, token: str) -> Optional[PostingList]:
        """
        Get the postings list for an exact token match.

        Args:
            token: The term to look up

        Returns:
            PostingList if the term has postings, None otherwise
        """
        node = self._find_node(token)
        if node is None:
            return None
        return self._values[node]

    def upsert(self, token: str, transform: Callable[[PostingList], None]) -> None:
        """
        Apply `transform` to the token's postings list, creating it if absent.

        The transform mutates the list in place through its sorted-insert
        operations. A list left empty afterwards is dropped from the dictionary.

        Args:
            token: The term to update
            transform: Callable receiving the term's PostingList
        """
        if self._frozen:
            raise SegmentFrozenError("Term dictionary is frozen")

        node = self._find_or_create_node(token)
        postings = self._values[node]
        is_new = postings is None
        if is_new:
            postings = PostingList()

        transform(postings)

        if postings:
            self._values[node] = postings
            if is_new:
                self._num_terms += 1
        elif not is_new:
            # Every posting was retracted
            self._values[node] = None
            self._num_terms -= 1

    def freeze(self):
        """Freeze the dictionary and every postings list it holds."""
        for postings in self._values:
            if postings is not None:
                postings.freeze()
        self._frozen = True
        logger.debug(f"Term dictionary frozen: {self._num_terms} terms, {self.node_count} nodes")

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def node_count(self) -> int:
        return len(self._children)

    def __contains__(self, token: str) -> bool:
        return self.lookup(token) is not None

    def __len__(self) -> int:
        """Number of terms with postings."""
        return self._num_terms

    def items(self) -> Iterator[Tuple[str, PostingList]]:
        """
        Iterate (token, postings) pairs in lexicographic code point order.

        Order is stable across runs, which the serializer relies on.
        """
        stack: List[Tuple[int, str]] = [(ROOT, '')]
        while stack:
            node, prefix = stack.pop()
            postings = self._values[node]
            if postings is not None:
                yield prefix, postings
            # Push in reverse so the smallest character is visited first
            for char in sorted(self._children[node], reverse=True):
                stack.append((self._children[node][char], prefix + char))

    def terms(self) -> Iterator[str]:
        for token, _ in self.items():
            yield token

    def get_statistics(self) -> Dict:
        """Get dictionary statistics."""
        total_postings = sum(len(p) for _, p in self.items())
        return {
            'vocabulary_size': self._num_terms,
            'trie_nodes': self.node_count,
            'total_postings': total_postings,
            'avg_postings_length': total_postings / self._num_terms if self._num_terms else 0
        }
