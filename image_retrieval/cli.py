"""
Command-line tools for building and querying descriptor databases.

    image-retrieval build -d data/olympus -f histogram -o features_hist.csv
    image-retrieval query -t data/olympus/pic.0164.jpg -f histogram -i features_hist.csv -n 5
    image-retrieval build -d data/olympus -f dnn_embedding -c resnet18.csv -o features_dnn.csv
"""

import argparse
import logging
import sys

from . import config
from .descriptors import DescriptorKind
from .engine import RetrievalEngine

logger = logging.getLogger(__name__)


def configure_logging(level: str = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or config.LOG_LEVEL), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def _resolve_kind(args) -> DescriptorKind:
    kind = DescriptorKind.from_name(args.feature)
    if kind.label != args.feature.strip().lower():
        print(f"Warning: unknown feature type '{args.feature}', using {kind.label}")
    return kind


def build_command(args) -> int:
    """Build a descriptor database and save it."""
    kind = _resolve_kind(args)
    embedding_csv = args.dnn_csv or config.EMBEDDING_CSV

    if kind is DescriptorKind.DNN_EMBEDDING and not embedding_csv:
        print("Error: dnn_embedding requires -c <dnn_csv>", file=sys.stderr)
        return 1

    print(f"Image directory: {args.directory}")
    print(f"Feature type: {kind.label}")
    print(f"Output file: {args.output}")

    engine = RetrievalEngine(embedding_csv)
    count = engine.build(args.directory, kind)
    if count < 0:
        print("Error: failed to build database", file=sys.stderr)
        return 1

    if not engine.save(args.output):
        print("Error: failed to save features", file=sys.stderr)
        return 1

    print(f"\nBuilt feature database with {count} images")
    return 0


def query_command(args) -> int:
    """Load a database and print the closest matches for one image."""
    kind = _resolve_kind(args)
    embedding_csv = args.dnn_csv or config.EMBEDDING_CSV

    if kind is DescriptorKind.DNN_EMBEDDING and not embedding_csv:
        print("Error: dnn_embedding requires -c <dnn_csv>", file=sys.stderr)
        return 1

    engine = RetrievalEngine(embedding_csv)
    if engine.load(args.input) <= 0:
        print("Error: failed to load feature database", file=sys.stderr)
        return 1

    if engine.kind is not kind:
        print(
            f"Warning: database uses {engine.kind.label}, query asked for "
            f"{kind.label}; using the database feature type"
        )

    results = engine.query(args.target, args.num_results)
    if not results:
        print("Error: query returned no results", file=sys.stderr)
        return 1

    print(f"\nTop {len(results)} matches for {args.target}:")
    for i, result in enumerate(results, 1):
        print(f"{i}. {result.image_path} (distance: {result.distance:.6g})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-retrieval",
        description="Content-based image retrieval",
    )
    subparsers = parser.add_subparsers(dest="command")
    kinds = ", ".join(DescriptorKind.names())

    build_parser_ = subparsers.add_parser("build", help="Build a feature database")
    build_parser_.add_argument("-d", "--directory", required=True,
                               help="Directory containing images")
    build_parser_.add_argument("-f", "--feature", required=True,
                               help=f"Feature type ({kinds})")
    build_parser_.add_argument("-o", "--output", required=True,
                               help="Output feature database file")
    build_parser_.add_argument("-c", "--dnn-csv",
                               help="Embedding table (required for dnn_embedding)")
    build_parser_.set_defaults(func=build_command)

    query_parser = subparsers.add_parser("query", help="Query a feature database")
    query_parser.add_argument("-t", "--target", required=True,
                              help="Target image")
    query_parser.add_argument("-f", "--feature", required=True,
                              help=f"Feature type ({kinds})")
    query_parser.add_argument("-i", "--input", required=True,
                              help="Input feature database file")
    query_parser.add_argument("-n", "--num-results", type=int,
                              default=config.DEFAULT_TOP_N,
                              help="Number of matches to return")
    query_parser.add_argument("-c", "--dnn-csv",
                              help="Embedding table (required for dnn_embedding)")
    query_parser.set_defaults(func=query_command)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
