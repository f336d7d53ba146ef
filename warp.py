#!/usr/bin/env python3
"""
Command-line thin-plate spline mesh warping.

Loads a source mesh plus source/destination landmark CSV files, solves the TPS
warp for the paired landmarks and writes the warped source mesh.

Each loading step is committed to an undoable document store and the result is
produced by the same result cache an interactive session would use.

Usage:
    python warp.py --source skull.obj --source-landmarks src.csv \
        --destination-landmarks dst.csv --output warped.obj
    python warp.py --source skull.stl --source-landmarks src.csv \
        --destination-landmarks dst.csv --blend 0.5
"""

import argparse
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path

# Silence third-party loggers
logging.getLogger('trimesh').setLevel(logging.ERROR)

from meshwarp.document import Document, InputIdentifier, UndoRedoStore
from meshwarp.document.actions import (
    action_load_landmarks_csv,
    action_load_mesh,
    action_save_paired_landmarks_csv,
    action_save_warped_mesh,
    action_set_blend_factor_and_save,
)
from meshwarp.document.model import count_landmarks, get_landmark_pairs
from meshwarp.errors import MeshWarpError
from meshwarp.mesh.io import get_supported_formats, is_supported_format
from meshwarp.utils.cache import ResultCache
from meshwarp.utils.config import DEFAULT_CONFIG_PATH, ConfigManager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='meshwarp - Thin-Plate Spline Mesh Warping',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument('--source', dest='source_mesh', required=True,
                        help='Path to source mesh file (.obj, .ply, .stl, .glb, .gltf, .off)')
    parser.add_argument('--destination', dest='destination_mesh',
                        help='Optional path to destination mesh file (recorded in the document only)')
    parser.add_argument('--source-landmarks', required=True,
                        help='CSV file of source landmarks (name?, x, y, z)')
    parser.add_argument('--destination-landmarks', required=True,
                        help='CSV file of destination landmarks (name?, x, y, z)')
    parser.add_argument('--blend', type=float, default=None,
                        help='Blending factor in [0, 1] (default: document.default_blend from config)')
    parser.add_argument('--output', default=None,
                        help='Output mesh path (.obj, .stl, .ply); defaults to the results directory')
    parser.add_argument('--paired-csv', default=None,
                        help='Optionally write the paired landmarks used for the warp to this CSV')
    parser.add_argument('--config', default=None,
                        help=f'Path to configuration file (.yaml); {DEFAULT_CONFIG_PATH} is used when present')
    parser.add_argument('--progress', action='store_true',
                        help='Show a progress bar while warping')
    return parser


def _resolve_output_path(args, config: ConfigManager) -> Path:
    if args.output:
        return Path(args.output)
    output_config = config.get_output_config()
    source_name = Path(args.source_mesh).stem
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    return Path(output_config['results_dir']) / f"{source_name}_warped_{timestamp}.{output_config['mesh_format']}"


def print_summary(doc: Document, output_path: Path, num_vertices: int, cache: ResultCache) -> None:
    """Print warp completion summary"""
    stats = cache.get_cache_stats()

    print("\nWarp completed successfully")
    print("=" * 50)
    print(f"Source landmarks: {count_landmarks(doc, InputIdentifier.SOURCE)}")
    print(f"Destination landmarks: {count_landmarks(doc, InputIdentifier.DESTINATION)}")
    print(f"Paired landmarks: {len(get_landmark_pairs(doc))}")
    print(f"Blend factor: {doc.blend:.3f}")
    print(f"Vertices warped: {num_vertices}")
    print(f"Solve time: {stats['last_solve_seconds']:.3f}s")
    print(f"Warp time: {stats['last_warp_seconds']:.3f}s")
    print(f"Output: {output_path}")
    print("=" * 50)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Validate config file exists
    if args.config and not os.path.exists(args.config):
        print(f"Error: Configuration file not found: {args.config}")
        return 1

    # Fall back to the shipped config file when it exists
    config_path = args.config
    if config_path is None and os.path.exists(DEFAULT_CONFIG_PATH):
        config_path = DEFAULT_CONFIG_PATH

    config = ConfigManager(config_path)
    logging.basicConfig(
        level=config.get_logging_config()['level'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Validate input files exist
    for label, path in (('Source mesh', args.source_mesh),
                        ('Source landmarks', args.source_landmarks),
                        ('Destination landmarks', args.destination_landmarks)):
        if not os.path.exists(path):
            print(f"Error: {label} file not found: {path}")
            return 1

    if not is_supported_format(args.source_mesh):
        print(f"Error: Unsupported source mesh format: {Path(args.source_mesh).suffix}")
        print(f"Supported formats: {', '.join(get_supported_formats())}")
        return 1

    document_config = config.get_document_config()
    blend = document_config['default_blend'] if args.blend is None else args.blend
    if not 0.0 <= blend <= 1.0:
        print(f"Error: Blend factor must be within [0, 1], got {blend}")
        return 1

    evaluation_options = config.get_evaluation_config()
    if args.progress:
        evaluation_options['show_progress'] = True

    store = UndoRedoStore(Document(), **config.get_store_config())
    cache = ResultCache(
        regularization=config.get_solver_config()['regularization'],
        evaluation_options=evaluation_options,
    )

    try:
        start = time.perf_counter()

        print("Loading meshes...")
        action_load_mesh(store, InputIdentifier.SOURCE, args.source_mesh)
        if args.destination_mesh:
            action_load_mesh(store, InputIdentifier.DESTINATION, args.destination_mesh)

        print("Loading landmarks...")
        num_src = action_load_landmarks_csv(store, InputIdentifier.SOURCE, args.source_landmarks)
        num_dst = action_load_landmarks_csv(store, InputIdentifier.DESTINATION, args.destination_landmarks)
        if num_src != num_dst:
            print(f"Warning: {num_src} source vs {num_dst} destination landmarks; "
                  f"unpaired landmarks are ignored")

        action_set_blend_factor_and_save(store, blend)

        print("Warping source mesh...")
        warped = cache.lookup(store.scratch)

        output_path = _resolve_output_path(args, config)
        action_save_warped_mesh(warped, output_path)

        if args.paired_csv:
            action_save_paired_landmarks_csv(store.scratch, args.paired_csv)

        print_summary(store.scratch, output_path, warped.num_vertices, cache)
        print(f"Completed in {time.perf_counter() - start:.2f}s")
        return 0

    except (MeshWarpError, OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
