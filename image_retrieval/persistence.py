"""
Text persistence for descriptor databases.

File layout:

    # CBIR Feature Database
    # Feature Type: histogram
    # Feature Dimension: 4096
    # Number of Images: 120
    pic.0001.jpg,0.0123,0,0.5,...

Only the bare filename of each stored path is written. Values use six
significant digits. On load, the two recognized header keys set the
descriptor kind and dimension; every other '#' line and blank line is
ignored, and numeric fields that fail to parse read as 0.0. Bytes that
are not valid UTF-8 are kept through surrogate escapes, so such
filenames are written back unchanged.
"""

import logging
from typing import List, NamedTuple, Sequence

import numpy as np

from .descriptors import Descriptor, DescriptorKind
from .embeddings import parse_float
from .image_source import filename_of

logger = logging.getLogger(__name__)

HEADER_TITLE = "# CBIR Feature Database"
TYPE_KEY = "Feature Type:"
DIMENSION_KEY = "Feature Dimension:"
COUNT_KEY = "Number of Images:"


class FeatureDatabase(NamedTuple):
    """Contents of a loaded database file."""

    kind: DescriptorKind
    dimension: int
    image_paths: List[str]
    descriptors: List[Descriptor]


def format_value(value: float) -> str:
    return f"{float(value):g}"


def save_database(path: str,
                  kind: DescriptorKind,
                  image_paths: Sequence[str],
                  descriptors: Sequence[Descriptor]) -> int:
    """
    Write a descriptor database to disk.

    Args:
        path: Output file.
        kind: Active descriptor kind.
        image_paths: Stored identifiers, parallel to descriptors.
        descriptors: Stored descriptors.

    Returns:
        Number of entries written.

    Raises:
        OSError: If the file cannot be written.
    """
    dimension = len(descriptors[0]) if descriptors else 0

    with open(path, "w", encoding="utf-8", errors="surrogateescape") as f:
        f.write(f"{HEADER_TITLE}\n")
        f.write(f"# {TYPE_KEY} {kind.label}\n")
        f.write(f"# {DIMENSION_KEY} {dimension}\n")
        f.write(f"# {COUNT_KEY} {len(descriptors)}\n")

        for image_path, descriptor in zip(image_paths, descriptors):
            values = ",".join(format_value(v) for v in descriptor.values)
            if values:
                f.write(f"{filename_of(image_path)},{values}\n")
            else:
                f.write(f"{filename_of(image_path)}\n")

    logger.info(f"Saved {len(descriptors)} descriptors to {path}")
    return len(descriptors)


def _header_value(line: str, key: str) -> str:
    return line.split(key, 1)[1].strip()


def load_database(path: str) -> FeatureDatabase:
    """
    Read a descriptor database written by save_database.

    A missing Feature Type header means baseline; a missing or
    unreadable Feature Dimension falls back to the length of the first
    data line.

    Raises:
        OSError: If the file cannot be read.
    """
    kind = DescriptorKind.BASELINE
    dimension = -1
    image_paths = []
    descriptors = []

    with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
        for line in f:
            line = line.rstrip("\r\n")
            if not line or line.startswith("#"):
                if TYPE_KEY in line:
                    kind = DescriptorKind.from_name(_header_value(line, TYPE_KEY))
                elif DIMENSION_KEY in line:
                    try:
                        dimension = int(_header_value(line, DIMENSION_KEY))
                    except ValueError:
                        logger.warning(f"Ignoring malformed dimension header: {line}")
                continue

            identifier, *fields = line.split(",")
            values = np.array([parse_float(t) for t in fields], dtype=np.float32)

            image_paths.append(identifier)
            descriptors.append(Descriptor(values, kind, identifier))

            if dimension < 0:
                dimension = len(values)

    # Entries parsed before a late Feature Type header still carry the final kind
    for descriptor in descriptors:
        descriptor.kind = kind

    logger.info(f"Loaded {len(descriptors)} {kind.label} descriptors from {path}")
    return FeatureDatabase(kind, max(dimension, 0), image_paths, descriptors)
