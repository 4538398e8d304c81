#!/usr/bin/env python
"""
Command line entry point for segsearch.
Uses Fire for CLI and Hydra for configuration management.
"""

import os
import json
import logging
from datetime import datetime
from pathlib import Path
import fire
import hydra
from omegaconf import OmegaConf
from dotenv import load_dotenv

# Load .env variables and register resolver
load_dotenv()
OmegaConf.register_new_resolver("env", os.getenv)

from segsearch.data.data_loader import DataLoader
from segsearch.indices.segment_index import SegmentIndex


class SearchCLI:
    """CLI for building and querying segment indices."""

    def __init__(self, config_path: str = "conf", config_name: str = "config"):
        """
        Initialize CLI with configuration.

        Args:
            config_path: Path to config directory (relative to this file)
            config_name: Name of main config file
        """
        self.config_path = config_path
        self.config_name = config_name
        self.config = None
        self.logger = None

    def _init_config(self, overrides=None):
        """Initialize Hydra configuration."""
        with hydra.initialize(version_base=None, config_path=self.config_path):
            self.config = hydra.compose(config_name=self.config_name, overrides=list(overrides or []))

        # Setup logging
        logging.basicConfig(
            level=getattr(logging, self.config.logging.level),
            format=self.config.logging.format
        )
        self.logger = logging.getLogger(__name__)

        Path(self.config.paths.index_storage).mkdir(parents=True, exist_ok=True)

    def create_index(self, source_file: str = None, index_name: str = None, *overrides):
        """
        Create an index from a JSON-lines document file.

        Args:
            source_file: Dataset file (defaults to dataset.source_file)
            index_name: Name for the index (defaults to <dataset>_<timestamp>)
            overrides: Extra Hydra overrides, e.g. tokenizer=... index.on_duplicate=replace
        """
        self._init_config(overrides)

        if index_name is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            index_name = f"{self.config.dataset.name}_{timestamp}"

        self.logger.info("=" * 60)
        self.logger.info("CREATING INDEX")
        self.logger.info("=" * 60)
        self.logger.info(f"Index Name: {index_name}")
        self.logger.info(f"Tokenizer: {self.config.tokenizer.name}")
        self.logger.info(f"Duplicate ids: {self.config.index.on_duplicate}")

        data_loader = DataLoader(self.config)
        index = SegmentIndex(self.config)
        index.create_index(index_name, data_loader.load_dataset(source_file))

        self.logger.info(f"✓ Index '{index_name}' created successfully!")
        return index_name

    def query_index(self, query: str, index_name: str = None, k: int = None, *overrides):
        """
        Query an existing index.

        Args:
            query: Query string (all terms must match)
            index_name: Name of the index to query (defaults to the most recent)
            k: Maximum number of results (defaults to query.top_k)
        """
        self._init_config(overrides)
        index = SegmentIndex(self.config)

        if index_name is None:
            index_name = index.latest_index()
            if index_name is None:
                self.logger.error("No indices found. Please create an index first.")
                return None
            self.logger.info(f"Using index: {index_name}")

        index.open_index(index_name)
        results = json.loads(index.query(query, k))

        self.logger.info("=" * 60)
        self.logger.info("QUERY RESULTS")
        self.logger.info("=" * 60)
        self.logger.info(f"Query: {results['query']}")
        self.logger.info(f"Total Hits: {results['total_results']}")

        for hit in results['results']:
            self.logger.info(f"{hit['rank']}. [{hit['doc_id']}] score={hit['score']:.4f}  "
                             f"{(hit['text'] or '')[:100]}")

        return results

    def list_indices(self, *overrides):
        """List all stored indices."""
        self._init_config(overrides)
        indices = SegmentIndex(self.config).list_indices()

        self.logger.info("=" * 60)
        self.logger.info("AVAILABLE INDICES")
        self.logger.info("=" * 60)

        if not indices:
            self.logger.info("No indices found.")
        for i, idx in enumerate(indices, 1):
            self.logger.info(f"{i}. {idx}")

        return indices

    def stats(self, index_name: str, *overrides):
        """Show statistics for a stored index."""
        self._init_config(overrides)
        index = SegmentIndex(self.config)
        index.open_index(index_name)
        print(json.dumps(index.get_statistics(), indent=2))

    def delete_index(self, index_name: str, *overrides):
        """
        Delete an index.

        Args:
            index_name: Name of the index to delete
        """
        self._init_config(overrides)
        self.logger.info(f"Deleting index: {index_name}")
        SegmentIndex(self.config).delete_index(index_name)
        self.logger.info(f"✓ Index '{index_name}' deleted successfully")

    def show_config(self, *overrides):
        """Display current configuration."""
        self._init_config(overrides)
        print(OmegaConf.to_yaml(self.config, resolve=True))


def main():
    """Main entry point."""
    fire.Fire(SearchCLI)


if __name__ == "__main__":
    main()
