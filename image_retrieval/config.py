"""
Runtime configuration for the retrieval tools.

Values are read from the environment at import time. Descriptor bin
counts and metric weights live in descriptors.py and metrics.py.
"""

import os

# Root logger level used by the command-line tools
LOG_LEVEL = os.environ.get("CBIR_LOG_LEVEL", "INFO").upper()

# Log a progress line every N indexed images during a build
PROGRESS_INTERVAL = int(os.environ.get("CBIR_PROGRESS_INTERVAL", "100"))

# Default embedding table for the dnn_embedding descriptor kind
EMBEDDING_CSV = os.environ.get("CBIR_EMBEDDING_CSV") or None

# Number of matches printed by the query command when -n is omitted
DEFAULT_TOP_N = int(os.environ.get("CBIR_DEFAULT_TOP_N", "3"))
