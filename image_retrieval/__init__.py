"""
image_retrieval — Content-based image retrieval over classic descriptors.

Describes every image in a directory with a fixed-length vector, stores
the vectors in a text database, and answers "top-N most similar" queries
by an exact linear scan with a metric chosen by descriptor kind.

Modules:
    descriptors     Descriptor, DescriptorKind and shared constants
    preprocessing   Image normalization, center window, Sobel magnitude
    histograms      Joint color, multi-region and texture/color histograms
    sky_descriptor  Hand-designed blue sky descriptor
    extractors      Baseline descriptor and per-kind dispatch
    embeddings      Precomputed embedding table lookup
    metrics         Distance metrics and per-kind dispatch
    ranking         MatchResult and top-N selection
    image_source    Directory scanning and image decoding
    persistence     Database file format
    engine          RetrievalEngine (build, load, save, query)
    cli             build / query command-line tools
    config          Environment configuration
"""

from .descriptors import Descriptor, DescriptorKind
from .engine import RetrievalEngine
from .ranking import MatchResult

__version__ = "1.0.0"
