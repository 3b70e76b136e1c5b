"""
Change Projection - Complete Workflow Example
=============================================

This script runs the change projection engine from files:
1. Load mesh, dense reference cloud, observations and cameras
2. Estimate vertex-to-camera visibility
3. Project change masks through an occlusion voxel grid
4. Export the 3D change points

Usage:
    python run_change_projection.py project --mesh mesh.ply --cloud dense.ply \
        --observations observations.txt --cameras cameras.json \
        --mask 3 change_3.png --output ./change_output
    python run_change_projection.py rank --new-images new.txt --matches matches.txt
"""

from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from ChangeProjection.cli import main


if __name__ == '__main__':
    sys.exit(main())
