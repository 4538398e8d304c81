"""
Segment serialization: term dictionary and posting lists as two byte artifacts.

Term dictionary (UTF-8 JSON):
    {"format": 1, "total_documents": N, "terms": [[token, offset, length, df], ...]}
    Terms appear in lexicographic order; offset/length locate the term's block
    in the posting lists artifact.

Posting lists (binary), one block per term:
    vbyte(zigzag(first doc id)) vbyte(gap) * (df - 1) vbyte(tf) * df
"""

from typing import Iterable, Optional, Tuple
import json
import logging

from .compression import GapEncoder, VariableByteEncoder, zigzag_decode, zigzag_encode
from .document_store import Document
from .segment import DuplicatePolicy, Segment
from ..errors import SegmentNotFrozenError
from ..preprocessing.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class SegmentSerializer:
    """Converts a frozen Segment to and from its on-disk byte artifacts."""

    @staticmethod
    def encode_postings(doc_ids, frequencies) -> bytes:
        gaps = GapEncoder.encode(doc_ids)
        if gaps:
            gaps[0] = zigzag_encode(gaps[0])
        return VariableByteEncoder.encode_list(gaps) + VariableByteEncoder.encode_list(frequencies)

    @staticmethod
    def decode_postings(data: bytes, offset: int, df: int) -> Tuple[list, list, int]:
        """
        Decode one postings block.

        Returns:
            (doc_ids, frequencies, bytes_consumed)
        """
        gaps, id_bytes = VariableByteEncoder.decode_list(data, df, offset)
        frequencies, freq_bytes = VariableByteEncoder.decode_list(data, df, offset + id_bytes)
        if gaps:
            gaps[0] = zigzag_decode(gaps[0])
        if any(g == 0 for g in gaps[1:]) or any(f == 0 for f in frequencies):
            raise ValueError(f"Corrupt postings block at offset {offset}")
        return GapEncoder.decode(gaps), frequencies, id_bytes + freq_bytes

    def serialize(self, segment: Segment) -> Tuple[bytes, bytes]:
        """
        Serialize a segment's term dictionary and posting lists.

        Documents are not included; they are persisted separately.

        Args:
            segment: Frozen segment

        Returns:
            (term_dictionary_bytes, posting_lists_bytes)
        """
        if not segment.frozen:
            raise SegmentNotFrozenError("Only frozen segments can be serialized")

        terms = []
        postings_data = bytearray()

        for token, postings in segment.dictionary.items():
            block = self.encode_postings(postings.doc_ids(), postings.frequencies())
            terms.append([token, len(postings_data), len(block), len(postings)])
            postings_data += block

        term_data = json.dumps({
            'format': FORMAT_VERSION,
            'total_documents': segment.total_documents,
            'terms': terms
        }, ensure_ascii=False).encode('utf-8')

        logger.debug(f"Serialized {len(terms)} terms: {len(term_data)} dictionary bytes, "
                     f"{len(postings_data)} postings bytes")
        return term_data, bytes(postings_data)

    def deserialize(self, term_data: bytes, postings_data: bytes,
                    documents: Iterable[Document],
                    tokenizer: Optional[Tokenizer] = None,
                    on_duplicate=DuplicatePolicy.REJECT) -> Segment:
        """
        Rebuild a frozen segment from its artifacts.

        Args:
            term_data: Term dictionary bytes from `serialize`
            postings_data: Posting lists bytes from `serialize`
            documents: The segment's documents
            tokenizer: Tokenizer the segment was built with
            on_duplicate: Duplicate policy recorded on the segment

        Returns:
            Frozen Segment

        Raises:
            ValueError: If the artifacts are malformed or disagree with the documents
        """
        header = json.loads(term_data.decode('utf-8'))
        if header.get('format') != FORMAT_VERSION:
            raise ValueError(f"Unsupported term dictionary format: {header.get('format')}")

        segment = Segment(tokenizer=tokenizer, on_duplicate=on_duplicate)
        for document in documents:
            segment.documents.put(document)

        if len(segment.documents) != header['total_documents']:
            raise ValueError(f"Expected {header['total_documents']} documents, "
                             f"got {len(segment.documents)}")

        for token, offset, length, df in header['terms']:
            if offset + length > len(postings_data):
                raise ValueError(f"Postings block for {token!r} runs past end of data")
            doc_ids, frequencies, consumed = self.decode_postings(postings_data, offset, df)
            if consumed != length:
                raise ValueError(f"Postings block for {token!r} is {consumed} bytes, "
                                 f"dictionary records {length}")
            missing = [doc_id for doc_id in doc_ids if doc_id not in segment.documents]
            if missing:
                raise ValueError(f"Postings for {token!r} reference unknown documents {missing[:5]}")

            def fill(postings, doc_ids=doc_ids, frequencies=frequencies):
                for doc_id, tf in zip(doc_ids, frequencies):
                    postings.add_occurrence(doc_id, tf)

            segment.dictionary.upsert(token, fill)
            segment.total_tokens += sum(frequencies)

        return segment.freeze()
