"""
Unit tests for the core index data structures.
Run with: pytest tests/test_core_structures.py -v
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from omegaconf import OmegaConf

from segsearch.core import (
    PostingNode, PostingList, TermDictionary, Document, DocumentStore,
    Segment, SegmentState, IndexBuilder
)
from segsearch.errors import (
    DuplicateDocumentIdError, MalformedInputError, SegmentFrozenError
)
from segsearch.preprocessing.tokenizer import (
    NltkTokenizer, Tokenizer, WhitespaceTokenizer, build_tokenizer
)


@pytest.fixture
def sample_documents():
    """The three-document collection used throughout."""
    return [
        Document(1, "hello this is test"),
        Document(2, "hello second test test"),
        Document(3, "hello"),
    ]


class TestPostingNode:
    """Test PostingNode class."""

    def test_create_posting_node(self):
        node = PostingNode(doc_id=1, term_frequency=3)
        assert node.doc_id == 1
        assert node.term_frequency == 3

    def test_posting_node_is_immutable(self):
        node = PostingNode(doc_id=1)
        with pytest.raises(AttributeError):
            node.term_frequency = 5

    def test_posting_node_serialization(self):
        node = PostingNode(doc_id=5, term_frequency=2)
        data = node.to_dict()

        assert data == {'doc_id': 5, 'term_frequency': 2}
        assert PostingNode.from_dict(data) == node


class TestPostingList:
    """Test PostingList class."""

    def test_create_empty_postings_list(self):
        pl = PostingList()
        assert len(pl) == 0
        assert not pl
        assert pl.document_frequency() == 0

    def test_add_occurrences_same_doc(self):
        """Repeated occurrences in one document increment a single entry."""
        pl = PostingList()
        pl.add_occurrence(1)
        pl.add_occurrence(1)
        pl.add_occurrence(1)

        assert len(pl) == 1
        assert pl.get_term_frequency(1) == 3

    def test_out_of_order_insertion_stays_sorted(self):
        """Documents arriving out of order are inserted at their sorted position."""
        pl = PostingList()
        for doc_id in [7, 2, 9, 4, 2, 1]:
            pl.add_occurrence(doc_id)

        assert pl.doc_ids() == [1, 2, 4, 7, 9]
        assert pl.get_term_frequency(2) == 2

    def test_add_occurrence_with_count(self):
        pl = PostingList()
        pl.add_occurrence(3, count=4)
        assert pl.get(3) == PostingNode(3, 4)

        with pytest.raises(ValueError):
            pl.add_occurrence(3, count=0)

    def test_get_nonexistent_posting(self):
        pl = PostingList()
        pl.add_occurrence(1)

        assert pl.get(999) is None
        assert pl.get_term_frequency(999) == 0

    def test_remove_occurrences(self):
        pl = PostingList()
        pl.add_occurrence(1, count=3)
        pl.add_occurrence(2)

        assert pl.remove_occurrences(1, 2)
        assert pl.get_term_frequency(1) == 1

        assert pl.remove_occurrences(1)
        assert pl.doc_ids() == [2]

        assert not pl.remove_occurrences(42)

    def test_seek(self):
        pl = PostingList.from_pairs([2, 5, 9, 14], [1, 1, 1, 1])

        assert pl.seek(5) == 1
        assert pl.seek(6) == 2
        assert pl.seek(6, start=3) == 3
        assert pl.seek(100) == len(pl)

    def test_total_term_frequency(self):
        pl = PostingList.from_pairs([1, 2, 3], [3, 2, 1])
        assert pl.total_term_frequency() == 6

    def test_iteration_and_indexing(self):
        pl = PostingList.from_pairs([1, 4], [2, 1])
        assert list(pl) == [PostingNode(1, 2), PostingNode(4, 1)]
        assert pl[1] == PostingNode(4, 1)

    def test_from_pairs_rejects_unsorted(self):
        with pytest.raises(ValueError):
            PostingList.from_pairs([3, 1], [1, 1])
        with pytest.raises(ValueError):
            PostingList.from_pairs([1, 1], [1, 1])
        with pytest.raises(ValueError):
            PostingList.from_pairs([1], [0])

    def test_frozen_list_rejects_mutation(self):
        pl = PostingList()
        pl.add_occurrence(1)
        pl.freeze()

        with pytest.raises(SegmentFrozenError):
            pl.add_occurrence(2)
        with pytest.raises(SegmentFrozenError):
            pl.remove_occurrences(1)

    def test_serialization(self):
        pl = PostingList.from_pairs([1, 2], [2, 3])
        restored = PostingList.from_dict(pl.to_dict())

        assert restored.doc_ids() == [1, 2]
        assert restored.frequencies() == [2, 3]


class TestTermDictionary:
    """Test the prefix-tree term dictionary."""

    def _add(self, dictionary, token, doc_id, count=1):
        dictionary.upsert(token, lambda postings: postings.add_occurrence(doc_id, count))

    def test_lookup_unseen_token(self):
        dictionary = TermDictionary()
        assert dictionary.lookup("missing") is None
        assert len(dictionary) == 0

    def test_upsert_creates_path(self):
        dictionary = TermDictionary()
        self._add(dictionary, "hello", 1)
        self._add(dictionary, "hello", 1)
        self._add(dictionary, "hello", 2)

        postings = dictionary.lookup("hello")
        assert postings.doc_ids() == [1, 2]
        assert postings.get_term_frequency(1) == 2
        assert len(dictionary) == 1

    def test_prefix_is_not_a_match(self):
        """Only exact tokens match; a stored token's prefix is absent."""
        dictionary = TermDictionary()
        self._add(dictionary, "hello", 1)

        assert dictionary.lookup("hel") is None
        assert "hel" not in dictionary
        assert "hello" in dictionary
        assert dictionary.lookup("helloo") is None

    def test_shared_prefixes_share_nodes(self):
        dictionary = TermDictionary()
        self._add(dictionary, "test", 1)
        nodes_after_first = dictionary.node_count
        self._add(dictionary, "tests", 1)

        assert dictionary.node_count == nodes_after_first + 1
        assert dictionary.lookup("test").doc_ids() == [1]
        assert dictionary.lookup("tests").doc_ids() == [1]

    def test_items_in_lexicographic_order(self):
        dictionary = TermDictionary()
        for token in ["b", "abc", "a", "ab", "B"]:
            self._add(dictionary, token, 1)

        assert list(dictionary.terms()) == ["B", "a", "ab", "abc", "b"]

    def test_retracting_every_posting_drops_term(self):
        dictionary = TermDictionary()
        self._add(dictionary, "gone", 1)
        dictionary.upsert("gone", lambda postings: postings.remove_occurrences(1))

        assert dictionary.lookup("gone") is None
        assert len(dictionary) == 0
        assert list(dictionary.items()) == []

    def test_freeze(self):
        dictionary = TermDictionary()
        self._add(dictionary, "word", 1)
        dictionary.freeze()

        assert dictionary.frozen
        with pytest.raises(SegmentFrozenError):
            self._add(dictionary, "other", 2)
        with pytest.raises(SegmentFrozenError):
            dictionary.lookup("word").add_occurrence(3)

    def test_statistics(self):
        dictionary = TermDictionary()
        self._add(dictionary, "a", 1)
        self._add(dictionary, "a", 2)
        self._add(dictionary, "b", 1)

        stats = dictionary.get_statistics()
        assert stats['vocabulary_size'] == 2
        assert stats['total_postings'] == 3
        assert stats['avg_postings_length'] == 1.5


class TestDocument:
    """Test Document validation."""

    def test_valid_document(self):
        doc = Document(1, "text")
        assert doc.id == 1
        assert doc.text == "text"

    @pytest.mark.parametrize("bad_id", ["1", 1.5, None, True, 2 ** 63])
    def test_invalid_id(self, bad_id):
        with pytest.raises(MalformedInputError):
            Document(bad_id, "text")

    def test_invalid_text(self):
        with pytest.raises(MalformedInputError):
            Document(1, None)

    def test_coerce(self):
        assert Document.coerce({'id': 4, 'text': 'x'}) == Document(4, 'x')
        assert Document.coerce((5, 'y')) == Document(5, 'y')

        with pytest.raises(MalformedInputError):
            Document.coerce({'text': 'no id'})
        with pytest.raises(MalformedInputError):
            Document.coerce("just a string")


class TestDocumentStore:
    """Test DocumentStore class."""

    def test_put_and_get(self):
        store = DocumentStore()
        doc = Document(1, "first")

        assert store.put(doc) is None
        assert store.get(1) is doc
        assert 1 in store
        assert len(store) == 1

    def test_put_replaces(self):
        store = DocumentStore()
        store.put(Document(1, "old"))
        previous = store.put(Document(1, "new"))

        assert previous.text == "old"
        assert store.get(1).text == "new"
        assert len(store) == 1

    def test_ids_sorted(self):
        store = DocumentStore()
        for doc_id in [3, -1, 2]:
            store.put(Document(doc_id, ""))
        assert store.ids() == [-1, 2, 3]

    def test_frozen_store(self):
        store = DocumentStore()
        store.freeze()
        with pytest.raises(SegmentFrozenError):
            store.put(Document(1, ""))

    def test_serialization(self):
        store = DocumentStore()
        store.put(Document(2, "b"))
        store.put(Document(1, "a"))

        restored = DocumentStore.from_dict(store.to_dict())
        assert list(restored.documents()) == [Document(1, "a"), Document(2, "b")]


class TestTokenizers:
    """Test tokenizer implementations."""

    def test_whitespace_tokenizer(self):
        tokens = WhitespaceTokenizer().tokenize("hello this is a text")
        assert [t for t, _ in tokens] == ["hello", "this", "is", "a", "text"]
        assert [p for _, p in tokens] == [0, 1, 2, 3, 4]

    def test_whitespace_tokenizer_preserves_case(self):
        tokens = WhitespaceTokenizer().tokenize("  Hello\tWORLD\n")
        assert [t for t, _ in tokens] == ["Hello", "WORLD"]

    def test_whitespace_tokenizer_empty(self):
        assert WhitespaceTokenizer().tokenize("") == []
        assert WhitespaceTokenizer().tokenize("   ") == []

    def test_implementations_satisfy_protocol(self):
        assert isinstance(WhitespaceTokenizer(), Tokenizer)
        assert isinstance(NltkTokenizer(), Tokenizer)

    def test_nltk_tokenizer_normalizes(self):
        tokenizer = NltkTokenizer(lowercase=True, stemming=True)
        tokens = [t for t, _ in tokenizer.tokenize("Running, runs!")]
        assert tokens == ["run", "run"]

    def test_nltk_tokenizer_stopwords(self):
        tokenizer = NltkTokenizer(stopword_set={"the"})
        assert tokenizer.tokenize("The cat") == [("cat", 1)]

    def test_build_tokenizer(self):
        assert isinstance(build_tokenizer(None), WhitespaceTokenizer)

        config = OmegaConf.create({'tokenizer': {'name': 'nltk', 'stemming': True}})
        tokenizer = build_tokenizer(config)
        assert isinstance(tokenizer, NltkTokenizer)
        assert tokenizer.stemmer is not None

        with pytest.raises(ValueError):
            build_tokenizer(OmegaConf.create({'tokenizer': {'name': 'unknown'}}))


class TestSegment:
    """Test Segment lifecycle and duplicate handling."""

    def test_starts_building(self):
        segment = Segment()
        assert segment.state == SegmentState.BUILDING
        assert segment.total_documents == 0

    def test_add_document(self):
        segment = Segment()
        segment.add_document(Document(1, "a b a"))

        assert segment.lookup("a").get_term_frequency(1) == 2
        assert segment.document_frequency("b") == 1
        assert segment.get_document(1).text == "a b a"
        assert segment.total_tokens == 3

    def test_freeze_blocks_additions(self):
        segment = Segment()
        segment.add_document(Document(1, "a"))
        segment.freeze()

        assert segment.frozen
        with pytest.raises(SegmentFrozenError):
            segment.add_document(Document(2, "b"))

    def test_reject_duplicate_leaves_segment_unchanged(self):
        segment = Segment(on_duplicate='reject')
        segment.add_document(Document(1, "alpha beta"))

        with pytest.raises(DuplicateDocumentIdError) as exc_info:
            segment.add_document(Document(1, "gamma"))

        assert exc_info.value.doc_id == 1
        assert segment.get_document(1).text == "alpha beta"
        assert segment.lookup("gamma") is None
        assert segment.lookup("alpha").doc_ids() == [1]

    def test_replace_duplicate_retracts_old_postings(self):
        segment = Segment(on_duplicate='replace')
        segment.add_document(Document(1, "a b b"))
        segment.add_document(Document(2, "b"))
        segment.add_document(Document(1, "b c"))

        assert segment.lookup("a") is None
        assert segment.lookup("b").get_term_frequency(1) == 1
        assert segment.lookup("b").doc_ids() == [1, 2]
        assert segment.lookup("c").doc_ids() == [1]
        assert segment.get_document(1).text == "b c"
        assert segment.total_documents == 2
        assert segment.total_tokens == 3

    def test_replace_retracts_pretokenized_postings(self):
        """Replacing removes the postings that were written, not a re-tokenization of the text."""
        segment = Segment(on_duplicate='replace')
        segment.add_document(Document(1, "alpha beta"), tokens=[("gamma", 0), ("gamma", 1)])
        nodes_before = segment.dictionary.node_count

        segment.add_document(Document(1, "delta"))

        assert segment.lookup("gamma") is None
        assert segment.lookup("delta").doc_ids() == [1]
        assert len(segment.dictionary) == 1
        assert segment.total_tokens == 1
        # Retraction never creates nodes for tokens that were not indexed
        assert segment.dictionary.node_count == nodes_before + len("delta")

    def test_statistics(self, sample_documents):
        segment = Segment()
        segment.add_documents(sample_documents)
        stats = segment.get_statistics()

        assert stats['state'] == 'BUILDING'
        assert stats['num_documents'] == 3
        assert stats['total_tokens'] == 9
        assert stats['vocabulary_size'] == 5


class TestIndexBuilder:
    """Test IndexBuilder."""

    def test_build_sample(self, sample_documents):
        segment = IndexBuilder().build(sample_documents)
        posting = segment.lookup("test")

        assert segment.frozen
        assert posting[0] == PostingNode(doc_id=1, term_frequency=1)
        assert posting[1] == PostingNode(doc_id=2, term_frequency=2)
        assert segment.lookup("hello").doc_ids() == [1, 2, 3]

    def test_build_unsorted_ids(self):
        docs = [Document(5, "x y"), Document(1, "x"), Document(3, "x x y")]
        segment = IndexBuilder().build(docs)

        assert segment.lookup("x").doc_ids() == [1, 3, 5]
        assert segment.lookup("x").frequencies() == [1, 2, 1]
        assert segment.lookup("y").doc_ids() == [3, 5]

    def test_frequencies_match_token_counts(self):
        """Every node's frequency equals the token's count in that document."""
        docs = [Document(i, " ".join(["w%d" % (j % (i + 1)) for j in range(10)])) for i in range(6)]
        segment = IndexBuilder().build(docs)

        for doc in docs:
            tokens = doc.text.split()
            for token in set(tokens):
                assert segment.lookup(token).get_term_frequency(doc.id) == tokens.count(token)

    def test_build_accepts_mappings_and_tuples(self):
        segment = IndexBuilder().build([{'id': 1, 'text': 'a'}, (2, 'a b')])
        assert segment.lookup("a").doc_ids() == [1, 2]

    def test_malformed_document_is_raised(self):
        with pytest.raises(MalformedInputError):
            IndexBuilder().build([{'id': 'one', 'text': 'a'}])

    def test_duplicate_rejected_by_default(self):
        with pytest.raises(DuplicateDocumentIdError):
            IndexBuilder().build([Document(1, "a"), Document(1, "b")])

    def test_duplicate_replace_policy(self):
        segment = IndexBuilder(on_duplicate='replace').build([Document(1, "a"), Document(1, "b")])
        assert segment.lookup("a") is None
        assert segment.lookup("b").doc_ids() == [1]

    def test_incremental_add_then_finish(self):
        builder = IndexBuilder()
        builder.add(Document(2, "b"))
        builder.add(Document(1, "b"))
        segment = builder.finish()

        assert segment.frozen
        assert segment.lookup("b").doc_ids() == [1, 2]

        # A fresh segment is started after finish()
        assert builder.build([]).total_documents == 0

    def test_custom_tokenizer(self):
        segment = IndexBuilder(tokenizer=NltkTokenizer(lowercase=True)).build([Document(1, "Hello HELLO")])
        assert segment.lookup("hello").get_term_frequency(1) == 2
        assert segment.lookup("Hello") is None
