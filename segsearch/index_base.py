from abc import ABC, abstractmethod
from typing import Iterable, Optional


class IndexBase(ABC):
    """
    Base index class with abstract methods to inherit for specific implementations.
    """

    @abstractmethod
    def create_index(self, index_id: str, documents: Iterable) -> None:
        """
        Creates an index for the given documents.

        Args:
            index_id: The unique identifier for the index.
            documents: An iterable of Documents (or {'id', 'text'} mappings,
                       or (id, text) tuples).
        """
        pass

    @abstractmethod
    def load_index(self, serialized_index_dump: str) -> None:
        """
        Loads an already created index into memory from disk.

        Args:
            serialized_index_dump: Path to the directory of a stored index
        """
        pass

    @abstractmethod
    def query(self, query: str, k: Optional[int] = None) -> str:
        """
        Queries the already loaded index to generate a results json and return as str.

        Args:
            query: Input query in str format
            k: Maximum number of results

        Returns:
            results: Output json str with results
        """
        pass

    @abstractmethod
    def delete_index(self, index_id: str) -> None:
        """Deletes the index with the given index_id."""
        pass

    @abstractmethod
    def list_indices(self) -> Iterable[str]:
        """
        Lists all indices.

        Returns:
            An iterable (list) of index ids.
        """
        pass

    @abstractmethod
    def list_indexed_files(self, index_id: str) -> Iterable[int]:
        """
        Lists all documents indexed in the given index.

        Args:
            index_id: The unique identifier for the index.

        Returns:
            An iterable (list-like object) of document ids.
        """
        pass
