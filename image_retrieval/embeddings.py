"""
External embedding table for the dnn_embedding descriptor kind.

Embeddings are computed outside this package (e.g. by a CNN) and stored
as text, one image per line:

    <identifier>,<v0>,<v1>,...,<v511>

Rows hold at most EMBEDDING_DIM values; extra columns are ignored,
missing ones are zero, and fields that are not numbers read as 0.0.
"""

import logging
from typing import Iterator, List, Tuple

import numpy as np

from .descriptors import (
    Descriptor, DescriptorKind, EmbeddingNotFoundError, EMBEDDING_DIM,
)

logger = logging.getLogger(__name__)


def parse_float(token: str) -> float:
    """Parse one numeric field, substituting 0.0 for malformed input."""
    try:
        return float(token)
    except ValueError:
        return 0.0


def _parse_row(fields: List[str]) -> np.ndarray:
    values = np.zeros(EMBEDDING_DIM, dtype=np.float32)
    for i, token in enumerate(fields[:EMBEDDING_DIM]):
        values[i] = parse_float(token)
    return values


def _iter_rows(csv_path: str) -> Iterator[Tuple[str, List[str]]]:
    """Yield (identifier, value fields) for every non-blank line."""
    with open(csv_path, "r", encoding="utf-8", errors="surrogateescape") as f:
        for line in f:
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            identifier, *fields = line.split(",")
            yield identifier, fields


def names_match(stored: str, query: str) -> bool:
    """
    Tolerant identifier comparison.

    True when either name contains the other, so a bare filename matches
    a stored path and vice versa.
    """
    return query in stored or stored in query


def load_embedding_table(csv_path: str) -> List[Descriptor]:
    """
    Load every row of an embedding table.

    Args:
        csv_path: Path to the embedding table.

    Returns:
        Descriptors in file order; source_id is the row identifier.

    Raises:
        OSError: If the file cannot be read.
    """
    descriptors = [
        Descriptor(_parse_row(fields), DescriptorKind.DNN_EMBEDDING, identifier)
        for identifier, fields in _iter_rows(csv_path)
    ]
    logger.info(f"Loaded {len(descriptors)} embeddings from {csv_path}")
    return descriptors


def extract_dnn_from_csv(csv_path: str, image_name: str) -> Descriptor:
    """
    Look up one image's embedding in the table.

    The first row whose identifier contains image_name, or is contained
    in it, wins. Later rows are not examined.

    Args:
        csv_path: Path to the embedding table.
        image_name: Filename or path of the image.

    Returns:
        Descriptor of kind DNN_EMBEDDING with source_id set to image_name.

    Raises:
        EmbeddingNotFoundError: If no row matches.
        OSError: If the file cannot be read.
    """
    for identifier, fields in _iter_rows(csv_path):
        if names_match(identifier, image_name):
            logger.debug(f"Embedding for {image_name} matched row '{identifier}'")
            return Descriptor(_parse_row(fields), DescriptorKind.DNN_EMBEDDING, image_name)

    raise EmbeddingNotFoundError(f"{image_name} not found in {csv_path}")
