"""
Tiling System Configuration
===========================
Central configuration for the tile layout and material estimation engine.
"""

import json
from pathlib import Path
from typing import Any, Dict, List


class TilingConfig:
    """Configuration settings for tile layout, waste and pricing."""

    # Base directory
    BASE_DIR = Path(__file__).parent

    # Output directory for reports and logs
    OUTPUT_DIR = BASE_DIR / "output"

    # ============================================================================
    # GEOMETRY
    # ============================================================================

    GEOMETRY = {
        'circle_segments': 48,  # Circle exclusions become 48-sided polygons
        'area_epsilon': 1e-9,  # Areas below this are treated as empty (cm2)
    }

    # ============================================================================
    # PATTERN PARAMETERS
    # ============================================================================

    PATTERNS = {
        'ratio_epsilon': 1e-6,  # Tolerance for integer ratio checks
        'default_bond_fraction': 0.5,  # Half bond
        'max_bond_period': 12,  # Longest repeating running bond cycle
        'lattice_margin_extents': 3,  # Candidate margin in tile extents
        'rotation_step_deg': 45,  # Rotations off this step raise a warning
    }

    # ============================================================================
    # PREVIEW / CLASSIFICATION
    # ============================================================================

    PREVIEW = {
        'max_tiles': 12000,  # Candidate ceiling before generation is refused
        'full_tile_tolerance': 0.999,  # Clipped area ratio counted as full
    }

    # ============================================================================
    # WASTE / OFFCUT REUSE
    # ============================================================================

    WASTE = {
        'allow_rotate': True,
        'optimize_cuts': False,
        'kerf_cm': 0.0,
        'min_offcut_side_cm': 0.1,  # Smallest side of a conservative offcut
        'min_offcut_area_cm2': 1e-6,  # Offcuts smaller than this are dropped
    }

    # ============================================================================
    # PRICING
    # ============================================================================

    PRICING = {
        'pack_m2': 0.0,  # 0 disables pack rounding
        'price_per_m2': 0.0,
        'reserve_tiles': 0,
        'price_by_packs': False,
        'currency': 'EUR',
    }

    # ============================================================================
    # SKIRTING
    # ============================================================================

    SKIRTING = {
        'enabled': True,
        'type': 'cutout',  # 'cutout' or 'bought'
        'height_cm': 6.0,
        'max_strips_per_tile': 2,
        'bought_width_cm': 60.0,
        'bought_price_per_piece': 0.0,
        'boundary_tolerance_cm': 1e-6,
    }

    # ============================================================================
    # REPORTING
    # ============================================================================

    REPORTING = {
        'formats': ['txt', 'json', 'csv', 'html'],
        'include_tile_list': True,
        'include_excluded_tiles': True,  # Tile export keeps removed tiles, flagged
        'decimal_places': 2,
    }

    # ============================================================================
    # LOGGING CONFIGURATION
    # ============================================================================

    LOGGING = {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'date_format': '%Y-%m-%d %H:%M:%S',
        'file': None,  # Set a path to enable the rotating file handler
        'max_bytes': 10 * 1024 * 1024,  # 10 MB
        'backup_count': 5,
        'console_output': True
    }

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key."""
        keys = key.split('.')
        value = cls

        for k in keys:
            if isinstance(value, dict):
                if k not in value:
                    return default
                value = value[k]
            elif hasattr(value, k):
                value = getattr(value, k)
            else:
                return default

        return value

    @classmethod
    def set(cls, key: str, value: Any):
        """Set configuration value by dot-notation key."""
        keys = key.split('.')
        target = cls

        for k in keys[:-1]:
            if isinstance(target, dict) and k in target:
                target = target[k]
            elif hasattr(target, k):
                target = getattr(target, k)
            else:
                raise KeyError(f"Configuration key not found: {key}")

        final_key = keys[-1]
        if isinstance(target, dict):
            target[final_key] = value
        elif hasattr(target, final_key):
            setattr(target, final_key, value)
        else:
            raise KeyError(f"Cannot set configuration key: {key}")

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        result = {}

        for attr in dir(cls):
            if not attr.startswith('_') and attr.isupper():
                value = getattr(cls, attr)
                if not callable(value):
                    result[attr] = value

        return result

    @classmethod
    def from_file(cls, filepath: str):
        """Load configuration from JSON or YAML file.

        Sections present in the file are merged into the existing ones so a
        partial file only overrides the keys it names.
        """
        filepath = str(filepath)

        with open(filepath, 'r') as f:
            if filepath.endswith('.json'):
                config_data = json.load(f)
            elif filepath.endswith(('.yml', '.yaml')):
                import yaml
                config_data = yaml.safe_load(f) or {}
            else:
                raise ValueError(f"Unsupported config file format: {filepath}")

        for key, value in config_data.items():
            if not hasattr(cls, key):
                continue
            current = getattr(cls, key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged = dict(current)
                merged.update(value)
                setattr(cls, key, merged)
            else:
                setattr(cls, key, value)

    @classmethod
    def save_to_file(cls, filepath: str):
        """Save configuration to JSON or YAML file."""
        filepath = str(filepath)
        config_data = cls.to_dict()

        with open(filepath, 'w') as f:
            if filepath.endswith('.json'):
                json.dump(config_data, f, indent=2, default=str)
            elif filepath.endswith(('.yml', '.yaml')):
                import yaml
                yaml.safe_dump(json.loads(json.dumps(config_data, default=str)),
                               f, default_flow_style=False)
            else:
                raise ValueError(f"Unsupported config file format: {filepath}")

    @classmethod
    def validate_config(cls) -> List[str]:
        """Validate configuration settings and return warnings."""
        warnings = []

        if cls.GEOMETRY['circle_segments'] < 8:
            warnings.append("Circle segments below 8 distort circular exclusions")

        tolerance = cls.PREVIEW['full_tile_tolerance']
        if not 0 < tolerance <= 1:
            warnings.append(f"Full tile tolerance {tolerance} outside (0, 1]")

        if cls.PREVIEW['max_tiles'] <= 0:
            warnings.append("Preview tile ceiling must be positive")

        if cls.WASTE['kerf_cm'] < 0:
            warnings.append("Kerf cannot be negative")

        if cls.SKIRTING['type'] not in ('cutout', 'bought'):
            warnings.append(f"Unknown skirting type: {cls.SKIRTING['type']}")

        if cls.PRICING['reserve_tiles'] < 0:
            warnings.append("Reserve tiles cannot be negative")

        return warnings
