"""
Content-based image retrieval engine.

Owns the in-memory descriptor database and answers top-N queries by an
exact linear scan:
    1. Build: extract one descriptor per image in a directory (or load a
       precomputed embedding table) under a single active kind
    2. Persist: save/load the database as a text file
    3. Query: score every stored descriptor with the kind's metric,
       sort ascending, keep the best N

Failures never escape as exceptions. Hard failures return -1 (build,
load) or False (save) and leave the previous database in place; images
that fail to decode are skipped; queries that cannot run return [].
"""

import logging
import threading
from typing import Dict, List, Optional, Union

from . import config
from .descriptors import Descriptor, DescriptorKind, EmbeddingNotFoundError, EmptyImageError
from .embeddings import load_embedding_table, extract_dnn_from_csv
from .extractors import extract_feature
from .image_source import list_images, load_image, filename_of
from .metrics import compute_distance
from .persistence import save_database, load_database
from .ranking import MatchResult, rank_results

logger = logging.getLogger(__name__)


class RetrievalEngine:
    """
    Exact nearest-neighbor image retrieval over one descriptor kind.

    Build, load and clear hold an internal lock for their whole run.
    Queries read the database without locking, so concurrent queries
    against a built database are safe but querying during a rebuild
    must be serialized by the caller.
    """

    def __init__(self, embedding_csv_path: Optional[str] = None):
        """
        Create an empty engine.

        Args:
            embedding_csv_path: Embedding table used by the dnn_embedding
                kind. Defaults to CBIR_EMBEDDING_CSV from the environment.
        """
        self.embedding_csv_path = embedding_csv_path or config.EMBEDDING_CSV
        self.kind = DescriptorKind.BASELINE
        self.image_paths: List[str] = []
        self.descriptors: List[Descriptor] = []
        self._embedding_lookup: Dict[str, int] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self.descriptors)

    @property
    def size(self) -> int:
        return len(self.descriptors)

    def set_embedding_table(self, csv_path: str) -> None:
        self.embedding_csv_path = csv_path

    def _replace(self, kind: DescriptorKind,
                 image_paths: List[str],
                 descriptors: List[Descriptor]) -> None:
        self.kind = kind
        self.image_paths = image_paths
        self.descriptors = descriptors
        if kind is DescriptorKind.DNN_EMBEDDING:
            self._embedding_lookup = {
                filename_of(path): i for i, path in enumerate(image_paths)
            }
        else:
            self._embedding_lookup = {}

    def build(self, image_dir: str, kind: DescriptorKind) -> int:
        """
        Rebuild the database from a directory of images.

        For dnn_embedding the directory is not scanned; the whole
        embedding table is loaded instead.

        Args:
            image_dir: Directory containing images.
            kind: Descriptor kind for every entry.

        Returns:
            Number of indexed images, or -1 if the source could not be
            opened (the previous database is kept).
        """
        with self._lock:
            if kind is DescriptorKind.DNN_EMBEDDING:
                return self._build_from_embeddings()

            try:
                paths = list_images(image_dir)
            except OSError as e:
                logger.error(f"Cannot open image directory {image_dir}: {e}")
                return -1

            logger.info(f"Building {kind.label} database from {len(paths)} images in {image_dir}")

            image_paths = []
            descriptors = []
            errors = 0

            for path in paths:
                image = load_image(path)
                if image is None:
                    logger.warning(f"Could not read: {path}")
                    errors += 1
                    continue

                try:
                    descriptor = extract_feature(image, kind, source_id=path)
                except Exception as e:
                    logger.warning(f"Failed to extract {kind.label} from {path}: {e}")
                    errors += 1
                    continue

                image_paths.append(path)
                descriptors.append(descriptor)

                if len(descriptors) % config.PROGRESS_INTERVAL == 0:
                    logger.info(f"Processed {len(descriptors)}/{len(paths)} images")

            self._replace(kind, image_paths, descriptors)
            logger.info(
                f"Built database with {len(descriptors)} images, {errors} errors"
            )
            return len(descriptors)

    def _build_from_embeddings(self) -> int:
        if not self.embedding_csv_path:
            logger.error("dnn_embedding requires an embedding table path")
            return -1

        try:
            descriptors = load_embedding_table(self.embedding_csv_path)
        except OSError as e:
            logger.error(f"Cannot open embedding table {self.embedding_csv_path}: {e}")
            return -1

        self._replace(DescriptorKind.DNN_EMBEDDING,
                      [d.source_id for d in descriptors], descriptors)
        return len(descriptors)

    def save(self, path: str) -> bool:
        """Write the database to a text file; False on I/O failure."""
        with self._lock:
            try:
                save_database(path, self.kind, self.image_paths, self.descriptors)
            except (OSError, UnicodeError) as e:
                logger.error(f"Cannot write database {path}: {e}")
                return False
            return True

    def load(self, path: str) -> int:
        """
        Replace the database with the contents of a saved file.

        Returns:
            Number of loaded entries, or -1 if the file could not be
            read (the previous database is kept).
        """
        with self._lock:
            try:
                database = load_database(path)
            except OSError as e:
                logger.error(f"Cannot read database {path}: {e}")
                return -1

            self._replace(database.kind, database.image_paths, database.descriptors)
            return len(database.descriptors)

    def clear(self) -> None:
        with self._lock:
            self.image_paths = []
            self.descriptors = []
            self._embedding_lookup = {}

    def query(self, target: Union[Descriptor, str], top_n: int) -> List[MatchResult]:
        """
        Find the top_n stored images closest to a target.

        Args:
            target: A Descriptor, or the path of an image to describe
                with the database's active kind.
            top_n: Maximum number of results.

        Returns:
            Up to top_n MatchResults sorted by ascending distance; empty
            when the database is empty or the target cannot be described.
        """
        if isinstance(target, Descriptor):
            return self.query_descriptor(target, top_n)
        return self.query_image(str(target), top_n)

    def query_descriptor(self, target: Descriptor, top_n: int) -> List[MatchResult]:
        image_paths = self.image_paths
        descriptors = self.descriptors
        kind = self.kind

        if not descriptors:
            logger.warning("Database is empty")
            return []

        results = [
            MatchResult(path, compute_distance(target, stored, kind))
            for path, stored in zip(image_paths, descriptors)
        ]

        mismatched = sum(1 for stored in descriptors if len(stored) != len(target))
        if mismatched:
            logger.warning(
                f"{mismatched} entries differ in length from the {len(target)}-value query"
            )

        results = rank_results(results, top_n)
        logger.info(f"Query complete: {len(descriptors)} candidates → {len(results)} results")
        return results

    def query_image(self, image_path: str, top_n: int) -> List[MatchResult]:
        target = self.describe(image_path)
        if target is None:
            return []
        return self.query_descriptor(target, top_n)

    def describe(self, image_path: str) -> Optional[Descriptor]:
        """
        Build the query descriptor for an image under the active kind.

        The target must decode for every kind. dnn_embedding targets are
        then looked up by filename in the loaded table first, then in the
        embedding table file.
        """
        image = load_image(image_path)
        if image is None:
            logger.error(f"Cannot load target image {image_path}")
            return None

        if self.kind is DescriptorKind.DNN_EMBEDDING:
            return self._lookup_embedding(image_path)

        try:
            return extract_feature(image, self.kind, source_id=image_path)
        except (EmptyImageError, ValueError) as e:
            logger.error(f"Failed to extract {self.kind.label} from {image_path}: {e}")
            return None

    def _lookup_embedding(self, image_path: str) -> Optional[Descriptor]:
        name = filename_of(image_path)

        index = self._embedding_lookup.get(name)
        if index is not None:
            return self.descriptors[index].copy(source_id=image_path)

        if not self.embedding_csv_path:
            logger.error(f"{name} is not in the database and no embedding table is set")
            return None

        try:
            descriptor = extract_dnn_from_csv(self.embedding_csv_path, name)
        except (EmbeddingNotFoundError, OSError) as e:
            logger.error(f"Target image not found in embedding table: {e}")
            return None

        descriptor.source_id = image_path
        return descriptor
