"""
SegmentIndex: config-driven facade that builds, stores, loads and queries a
single segment.

File layout under `paths.index_storage/<index_id>/` (names from `index.*`):
    metadata.json       index metadata
    terms_dict.dat      term dictionary artifact
    posting_lists.dat   posting lists artifact
    documents.jsonl     one {"id", "text"} object per line
"""

import json
import logging
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from omegaconf import OmegaConf

from ..core import Document, IndexBuilder, QueryEngine, Segment, SegmentSerializer
from ..errors import IndexNotFoundError
from ..index_base import IndexBase
from ..preprocessing.tokenizer import build_tokenizer

logger = logging.getLogger(__name__)


class SegmentIndex(IndexBase):
    """Single-segment TF-IDF index with conjunctive queries."""

    def __init__(self, config):
        """
        Initialize SegmentIndex with configuration.

        Args:
            config: Hydra configuration object
        """
        self.config = config

        index_cfg = config.get('index', {})
        self.on_duplicate = index_cfg.get('on_duplicate', 'reject')
        self.term_dict_file = index_cfg.get('term_dict_file', 'terms_dict.dat')
        self.posting_lists_file = index_cfg.get('posting_lists_file', 'posting_lists.dat')
        self.documents_file = index_cfg.get('documents_file', 'documents.jsonl')
        self.metadata_file = index_cfg.get('metadata_file', 'metadata.json')

        query_cfg = config.get('query', {})
        self.default_k = query_cfg.get('top_k', 10)
        self.max_steps = query_cfg.get('max_steps', None)

        self.storage_dir = Path(config.paths.index_storage)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

        self.tokenizer_config = self._configured_tokenizer()
        self.tokenizer = build_tokenizer(config)
        self.serializer = SegmentSerializer()

        self.segment: Optional[Segment] = None
        self.engine: Optional[QueryEngine] = None
        self.index_name: Optional[str] = None
        self.created_at: Optional[datetime] = None

        logger.info(f"Initialized SegmentIndex with tokenizer={self.tokenizer}, "
                    f"on_duplicate={self.on_duplicate}")

    def create_index(self, index_id: str, documents: Iterable) -> None:
        """
        Build a segment from documents and save it.

        Args:
            index_id: The unique identifier for the index
            documents: Iterable of Documents, {'id', 'text'} mappings or (id, text) pairs
        """
        start_time = time.time()

        index_path = self._get_index_path(index_id)
        if index_path.exists():
            logger.warning(f"Index {index_id} already exists. Overwriting.")
            shutil.rmtree(index_path)

        logger.info(f"Creating index: {index_id}")

        # New indices always use the configured tokenizer, even after a load
        self.tokenizer_config = self._configured_tokenizer()
        self.tokenizer = build_tokenizer(self.config)

        builder = IndexBuilder(tokenizer=self.tokenizer, on_duplicate=self.on_duplicate)
        self._attach(index_id, builder.build(documents))
        self.created_at = datetime.now()

        self._save_index()

        duration = time.time() - start_time
        logger.info(f"Index creation complete. Indexed {self.segment.total_documents} "
                    f"documents in {duration:.2f}s")

    def load_index(self, serialized_index_dump: str) -> None:
        """
        Load an existing index from disk.

        Args:
            serialized_index_dump: Path to the index directory
        """
        index_path = Path(serialized_index_dump)

        if not index_path.exists():
            logger.error(f"Index not found at {index_path}")
            raise IndexNotFoundError(f"Index not found at {index_path}")

        logger.info(f"Loading index from: {index_path}")

        try:
            with open(index_path / self.metadata_file, 'r') as f:
                metadata = json.load(f)

            stored_tokenizer = metadata.get('tokenizer_config')
            if stored_tokenizer is None:
                raise ValueError(f"Index at {index_path} does not record its tokenizer settings")
            tokenizer = build_tokenizer(OmegaConf.create({'tokenizer': stored_tokenizer}))
            if repr(tokenizer) != repr(self.tokenizer):
                logger.warning(f"Index was built with {tokenizer}, not the configured "
                               f"{self.tokenizer}; querying with the index's tokenizer")
            self.tokenizer = tokenizer
            self.tokenizer_config = stored_tokenizer

            files = metadata.get('files', {})
            term_data = (index_path / files.get('term_dict', self.term_dict_file)).read_bytes()
            postings_data = (index_path / files.get('posting_lists', self.posting_lists_file)).read_bytes()
            documents = self._read_documents(index_path / files.get('documents', self.documents_file))

            segment = self.serializer.deserialize(
                term_data, postings_data, documents,
                tokenizer=self.tokenizer,
                on_duplicate=metadata.get('on_duplicate', self.on_duplicate)
            )
            self._attach(metadata['index_name'], segment)

            created_at = metadata.get('created_at')
            self.created_at = datetime.fromisoformat(created_at) if created_at else None

            logger.info(f"Successfully loaded index: {self.index_name}")
            logger.info(f"Documents: {segment.total_documents}, Vocabulary: {len(segment.dictionary)}")

        except Exception as e:
            logger.error(f"Error loading index: {e}")
            raise

    def open_index(self, index_id: str) -> None:
        """Load a stored index by id unless it is already loaded."""
        if self.segment is None or self.index_name != index_id:
            self.load_index(str(self._get_index_path(index_id)))

    def query(self, query: str, k: Optional[int] = None) -> str:
        """
        Query the index and return results as JSON string.

        Args:
            query: Input query string
            k: Maximum number of results (defaults to `query.top_k`)

        Returns:
            JSON string with results
        """
        if self.engine is None:
            raise ValueError("No index loaded. Call load_index() first.")

        start_time = time.time()
        k = self.default_k if k is None else k

        hits = self.engine.search_hits(query, k)

        query_time = time.time() - start_time
        logger.info(f"Query '{query}' returned {len(hits)} results in {query_time:.3f}s")

        return json.dumps({
            'query': query,
            'results': [hit.to_dict() for hit in hits],
            'total_results': len(hits),
            'query_time': query_time
        })

    def delete_index(self, index_id: str) -> None:
        """
        Delete an index from disk.

        Args:
            index_id: Name of the index to delete
        """
        index_path = self._get_index_path(index_id)

        if not index_path.exists():
            logger.warning(f"Index {index_id} not found")
            raise IndexNotFoundError(f"Index {index_id} not found")

        shutil.rmtree(index_path)
        if self.index_name == index_id:
            self.segment = None
            self.engine = None
            self.index_name = None
        logger.info(f"Deleted index: {index_id}")

    def list_indices(self) -> List[str]:
        """
        List all stored indices.

        Returns:
            Sorted list of index ids
        """
        return sorted(
            index_dir.name for index_dir in self.storage_dir.iterdir()
            if index_dir.is_dir() and (index_dir / self.metadata_file).exists()
        )

    def latest_index(self) -> Optional[str]:
        """
        Most recently created stored index.

        Returns:
            Index id with the latest `created_at`, or None if there are no indices
        """
        latest = None
        latest_created = ''
        for index_id in self.list_indices():
            with open(self._get_index_path(index_id) / self.metadata_file, 'r') as f:
                created_at = json.load(f).get('created_at') or ''
            # ISO timestamps order lexicographically
            if latest is None or created_at > latest_created:
                latest, latest_created = index_id, created_at
        return latest

    def list_indexed_files(self, index_id: str) -> List[int]:
        """
        List all documents indexed in the given index.

        Returns:
            Ascending list of document ids
        """
        self.open_index(index_id)
        return self.segment.documents.ids()

    def get_statistics(self) -> Dict[str, Any]:
        """Get index statistics."""
        if self.segment is None:
            return {}

        return {
            'index_name': self.index_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'index_size_bytes': self._get_index_size(),
            'tokenizer': repr(self.tokenizer),
            'on_duplicate': self.on_duplicate,
            **self.segment.get_statistics()
        }

    # Helper methods

    def _attach(self, index_id: str, segment: Segment):
        self.index_name = index_id
        self.segment = segment
        self.engine = QueryEngine(segment, tokenizer=self.tokenizer, max_steps=self.max_steps)

    def _configured_tokenizer(self) -> Dict[str, Any]:
        """Tokenizer section of the config as a plain dict, for metadata."""
        tokenizer_cfg = self.config.get('tokenizer')
        if tokenizer_cfg is None:
            return {'name': 'whitespace'}
        return OmegaConf.to_container(tokenizer_cfg, resolve=True)

    def _get_index_path(self, index_name: str) -> Path:
        """Get path to index directory."""
        return self.storage_dir / index_name

    def _save_index(self):
        """Save index to disk."""
        index_path = self._get_index_path(self.index_name)
        index_path.mkdir(parents=True, exist_ok=True)

        term_data, postings_data = self.serializer.serialize(self.segment)
        (index_path / self.term_dict_file).write_bytes(term_data)
        (index_path / self.posting_lists_file).write_bytes(postings_data)

        with open(index_path / self.documents_file, 'w', encoding='utf-8') as f:
            for document in self.segment.documents.documents():
                f.write(json.dumps(document.to_dict(), ensure_ascii=False) + '\n')

        metadata = {
            'index_name': self.index_name,
            'document_count': self.segment.total_documents,
            'vocabulary_size': len(self.segment.dictionary),
            'created_at': self.created_at.isoformat() if self.created_at else datetime.now().isoformat(),
            'tokenizer': repr(self.tokenizer),
            'tokenizer_config': self.tokenizer_config,
            'on_duplicate': self.on_duplicate,
            'files': {
                'term_dict': self.term_dict_file,
                'posting_lists': self.posting_lists_file,
                'documents': self.documents_file,
            }
        }

        # Written last so a directory without metadata is never listed
        with open(index_path / self.metadata_file, 'w') as f:
            json.dump(metadata, f, indent=2)

        logger.info(f"Index saved to {index_path}")

    @staticmethod
    def _read_documents(path: Path) -> List[Document]:
        documents = []
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                if line.strip():
                    documents.append(Document.from_dict(json.loads(line)))
        return documents

    def _get_index_size(self) -> int:
        """Calculate total size of index on disk."""
        index_path = self._get_index_path(self.index_name)
        if not index_path.exists():
            return 0
        return sum(p.stat().st_size for p in index_path.rglob('*') if p.is_file())
