"""
Command line entry point.

Two commands:
    project  - visibility sweep + change mask projection from files
    rank     - neighbour ranking of new images from a match report

Usage:
    change-projection project --mesh mesh.ply --cloud dense.ply --observations obs.txt \
        --cameras cameras.json --mask 3 change_3.png --output ./change_output
    change-projection rank --new-images new.txt --matches matches.txt -k 5
"""

import argparse
import sys
from pathlib import Path

from .config import ChangeProjectionConfig, get_preset_config, load_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Change Projection Pipeline")
    subparsers = parser.add_subparsers(dest='command', required=True)

    # project
    project = subparsers.add_parser('project', help='Project change masks onto the scene')
    project.add_argument('--mesh', type=str, required=True,
                         help='Reconstructed mesh (PLY)')
    project.add_argument('--cloud', type=str, required=True,
                         help='Dense reference cloud (PLY)')
    project.add_argument('--observations', type=str, required=True,
                         help='Per-point image ids, one line per cloud point')
    project.add_argument('--cameras', type=str, required=True,
                         help='JSON list of cameras, list position = image id')
    project.add_argument('--mask', nargs=2, action='append', default=[],
                         metavar=('IMAGE_ID', 'PATH'),
                         help='Change mask of an image (repeatable)')
    project.add_argument('--occlusion-cloud', type=str, default=None,
                         help='Cloud voxelized for occlusion (default: mesh vertices)')
    project.add_argument('--output', type=str, default='./change_output',
                         help='Output directory')

    project.add_argument('--preset', type=str, default=None,
                         choices=['fast', 'balanced', 'accurate'],
                         help='Parameter preset')
    project.add_argument('--config', type=str, default=None,
                         help='JSON configuration file (overrides --preset)')
    project.add_argument('--k-nearest', type=int, default=None,
                         help='Reference points voting per vertex')
    project.add_argument('--radius-multiplier', type=float, default=None,
                         help='Neighbourhood radius in mean edge lengths')
    project.add_argument('--num-candidates', type=int, default=None,
                         help='Candidate images kept per vertex')
    project.add_argument('--leaf-size', type=float, default=None,
                         help='Occlusion voxel size')
    project.add_argument('--workers', type=int, default=None,
                         help='Worker threads for the visibility sweep')
    project.add_argument('--no-export', action='store_true',
                         help='Skip PLY export')

    # rank
    rank = subparsers.add_parser('rank', help='Rank registered neighbours of new images')
    rank.add_argument('--new-images', type=str, required=True,
                      help='File with one new image name per line')
    rank.add_argument('--matches', type=str, required=True,
                      help='Pairwise match report')
    rank.add_argument('-k', '--k-neighbors', type=int, default=5,
                      help='Neighbours kept per new image')

    for sub in (project, rank):
        sub.add_argument('--verbose', action='store_true',
                         help='Enable verbose logging')
        sub.add_argument('--log-file', type=str, default=None,
                         help='Log to file')

    return parser


def _build_config(args) -> ChangeProjectionConfig:
    if getattr(args, 'config', None):
        config = load_config(args.config)
    elif getattr(args, 'preset', None):
        config = get_preset_config(args.preset)
    else:
        config = ChangeProjectionConfig()

    overrides = {
        'k_nearest': getattr(args, 'k_nearest', None),
        'radius_multiplier': getattr(args, 'radius_multiplier', None),
        'num_candidates': getattr(args, 'num_candidates', None),
        'num_workers': getattr(args, 'workers', None),
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config.visibility, name, value)

    if getattr(args, 'leaf_size', None) is not None:
        config.occlusion.leaf_size = args.leaf_size
    if getattr(args, 'k_neighbors', None) is not None:
        config.neighbor_match.k_neighbors = args.k_neighbors
    if getattr(args, 'no_export', False):
        config.export_points = False

    config.verbose = args.verbose
    config.log_file = args.log_file
    config.validate()
    return config


def _run_project(args, config: ChangeProjectionConfig) -> int:
    from .io import load_mask, load_mesh, load_point_cloud, load_reference_cloud, load_shots
    from .pipeline import ChangeProjectionPipeline

    if not args.mask:
        print("Error: at least one --mask IMAGE_ID PATH is required")
        return 1

    try:
        mesh = load_mesh(args.mesh)
        reference_cloud = load_reference_cloud(args.cloud, args.observations)
        shots = load_shots(args.cameras)
        masks = {int(image_id): load_mask(path) for image_id, path in args.mask}
        occlusion_cloud = load_point_cloud(args.occlusion_cloud) if args.occlusion_cloud else None
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading inputs: {e}")
        return 1

    pipeline = ChangeProjectionPipeline(config)
    result = pipeline.run(
        mesh=mesh,
        reference_cloud=reference_cloud,
        shots=shots,
        masks=masks,
        output_dir=Path(args.output),
        occlusion_cloud=occlusion_cloud
    )

    if not result['success']:
        print(f"\nChange projection failed: {result.get('error', 'Unknown error')}")
        return 1

    print("\n" + "=" * 70)
    print("CHANGE PROJECTION SUCCESSFUL")
    print("=" * 70)
    print(f"Points: {result['points_path']}")
    print("\nStatistics:")
    for key, value in result['statistics'].items():
        if key == 'candidate_images':
            value = f"{len(value)} images"
        print(f"  {key}: {value}")
    print("=" * 70)
    return 0


def _run_rank(args, config: ChangeProjectionConfig) -> int:
    from .io import read_image_list
    from .pipeline import ChangeProjectionPipeline

    try:
        new_images = read_image_list(args.new_images)
        result = ChangeProjectionPipeline(config).rank_new_images(new_images, args.matches)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    for name, neighbors in zip(new_images, result['neighbors']):
        print(f"{name}: {', '.join(neighbors) if neighbors else '-'}")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = _build_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error in configuration: {e}")
        return 1

    try:
        if args.command == 'project':
            return _run_project(args, config)
        return _run_rank(args, config)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
