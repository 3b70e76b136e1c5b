"""
Configuration management for the change projection engine.

Dataclass configurations for each stage plus a few presets. Values are
validated up front so that a bad parameter fails before a long sweep starts.
"""

import copy
import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class VisibilityConfig:
    """Configuration for the vertex-to-camera visibility sweep"""

    # Number of reference points voting for each vertex
    k_nearest: int = 10

    # Neighbourhood radius in units of the mesh's mean edge length
    radius_multiplier: float = 7.0

    # Size of the candidate image shortlist per vertex
    num_candidates: int = 9

    # Parallelism
    num_workers: int = 1
    chunk_size: int = 1024

    # Log progress every N vertices
    progress_interval: int = 1000

    def validate(self):
        """Raise ValueError on invalid parameters"""
        _require_positive(self, ['k_nearest', 'num_candidates', 'num_workers',
                                 'chunk_size', 'progress_interval'])
        if self.radius_multiplier < 0:
            raise ValueError(f"radius_multiplier must be >= 0, got {self.radius_multiplier}")


@dataclass
class OcclusionConfig:
    """Configuration for ray-voxel occlusion projection"""

    # Voxel edge length in cloud units
    leaf_size: float = 0.05

    # Depth at which mask pixels are unprojected to build ray directions
    unproject_depth: float = 100.0

    # Log progress every N mask pixels
    progress_interval: int = 100

    def validate(self):
        """Raise ValueError on invalid parameters"""
        _require_positive(self, ['leaf_size', 'unproject_depth', 'progress_interval'])


@dataclass
class NeighborMatchConfig:
    """Configuration for ranking registered neighbours of new images"""

    k_neighbors: int = 5

    def validate(self):
        """Raise ValueError on invalid parameters"""
        _require_positive(self, ['k_neighbors'])


@dataclass
class ChangeProjectionConfig:
    """Configuration for the complete change projection pipeline"""

    visibility: VisibilityConfig = field(default_factory=VisibilityConfig)
    occlusion: OcclusionConfig = field(default_factory=OcclusionConfig)
    neighbor_match: NeighborMatchConfig = field(default_factory=NeighborMatchConfig)

    # Output
    export_points: bool = True
    point_color: Tuple[int, int, int] = (255, 0, 0)

    # Logging
    verbose: bool = False
    log_file: Optional[str] = None

    def validate(self):
        """Validate every stage configuration"""
        self.visibility.validate()
        self.occlusion.validate()
        self.neighbor_match.validate()
        if len(self.point_color) != 3 or any(not 0 <= c <= 255 for c in self.point_color):
            raise ValueError(f"point_color must be an RGB triple in [0, 255], got {self.point_color}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary"""
        data = asdict(self)
        data['point_color'] = list(self.point_color)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChangeProjectionConfig':
        """
        Build a configuration from a (possibly partial) dictionary.

        Unknown keys raise ValueError so that typos do not silently fall
        back to defaults.
        """
        data = copy.deepcopy(data)
        sections = {
            'visibility': VisibilityConfig,
            'occlusion': OcclusionConfig,
            'neighbor_match': NeighborMatchConfig,
        }
        kwargs = {}
        for key, value in data.items():
            if key in sections:
                try:
                    kwargs[key] = sections[key](**value)
                except TypeError as e:
                    raise ValueError(f"Invalid '{key}' section: {e}") from e
            elif key == 'point_color':
                kwargs[key] = tuple(value)
            elif key in ('export_points', 'verbose', 'log_file'):
                kwargs[key] = value
            else:
                raise ValueError(f"Unknown configuration key: {key}")
        return cls(**kwargs)


PRESET_CONFIGS = {
    'fast': {
        'visibility': {'k_nearest': 5, 'radius_multiplier': 3.0, 'num_candidates': 5},
        'occlusion': {'leaf_size': 0.1},
    },
    'balanced': {
        'visibility': {'k_nearest': 10, 'radius_multiplier': 7.0, 'num_candidates': 9},
        'occlusion': {'leaf_size': 0.05},
    },
    'accurate': {
        'visibility': {'k_nearest': 20, 'radius_multiplier': 7.0, 'num_candidates': 12},
        'occlusion': {'leaf_size': 0.02},
    },
}


def get_preset_config(preset: str) -> ChangeProjectionConfig:
    """
    Create a configuration from a named preset.

    Args:
        preset: One of PRESET_CONFIGS

    Returns:
        Validated configuration
    """
    if preset not in PRESET_CONFIGS:
        available = list(PRESET_CONFIGS.keys())
        raise ValueError(f"Unknown preset: {preset}. Available: {available}")

    config = ChangeProjectionConfig.from_dict(PRESET_CONFIGS[preset])
    config.validate()
    return config


def save_config(config: ChangeProjectionConfig, filepath: str):
    """Save configuration to a JSON file"""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)


def load_config(filepath: str) -> ChangeProjectionConfig:
    """
    Load configuration from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the content is not a valid configuration
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    with open(path, 'r') as f:
        data = json.load(f)

    config = ChangeProjectionConfig.from_dict(data)
    config.validate()
    return config


def _require_positive(section, names: List[str]):
    for name in names:
        value = getattr(section, name)
        if value <= 0:
            raise ValueError(f"{type(section).__name__}.{name} must be positive, got {value}")
