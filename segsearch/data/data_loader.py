import json
import logging
from pathlib import Path
from typing import Iterator, Optional
from tqdm import tqdm

from ..core.document_store import Document
from ..errors import MalformedInputError

logger = logging.getLogger(__name__)


class DataLoader:
    """Loads documents from a JSON-lines file."""

    def __init__(self, config):
        """
        Initialize data loader.

        Args:
            config: Hydra configuration object
        """
        self.config = config

    def load_dataset(self, source_file: Optional[str] = None) -> Iterator[Document]:
        """
        Load documents from the configured dataset file.

        Each non-blank line must be a JSON object carrying the configured id
        and text fields.

        Args:
            source_file: Overrides `dataset.source_file`

        Yields:
            Documents in file order

        Raises:
            FileNotFoundError: If the dataset file does not exist
            MalformedInputError: If a line is not valid JSON or lacks a valid id/text
        """
        dataset_path = Path(source_file or self.config.dataset.source_file)

        if not dataset_path.exists():
            raise FileNotFoundError(f"Dataset file not found: {dataset_path}")

        logger.info(f"Loading dataset from: {dataset_path}")

        id_field = self.config.dataset.fields.id_field
        text_field = self.config.dataset.fields.text_field
        max_docs = self.config.dataset.get('sample_size')
        show_progress = self.config.get('indexing', {}).get('show_progress', False)

        loaded = 0
        with open(dataset_path, 'r', encoding='utf-8') as f:
            pbar = tqdm(total=max_docs, desc="Loading documents", disable=not show_progress)

            for line_number, line in enumerate(f, 1):
                if max_docs is not None and loaded >= max_docs:
                    break
                if not line.strip():
                    continue

                try:
                    record = json.loads(line)
                except json.JSONDecodeError as e:
                    raise MalformedInputError(f"{dataset_path}:{line_number}: invalid JSON: {e}") from e

                if not isinstance(record, dict) or id_field not in record:
                    raise MalformedInputError(f"{dataset_path}:{line_number}: missing '{id_field}' field")

                try:
                    document = Document(id=record[id_field], text=record.get(text_field))
                except MalformedInputError as e:
                    raise MalformedInputError(f"{dataset_path}:{line_number}: {e}") from e

                yield document
                loaded += 1
                pbar.update(1)

            pbar.close()

        logger.info(f"Loaded {loaded} documents")
