"""
utils.py - Utility Functions and Helpers
=========================================
Common utility functions used throughout the tiling engine.
"""

import json
import hashlib
import logging
import time
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np


logger = logging.getLogger(__name__)


# ============================================================================
# FILE OPERATIONS
# ============================================================================

def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure directory exists, create if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_json(data: Dict, filepath: Union[str, Path], indent: int = 2):
    """Save data to JSON file."""
    filepath = Path(filepath)
    ensure_directory(filepath.parent)

    with open(filepath, 'w') as f:
        json.dump(data, f, indent=indent, default=str)

    logger.debug(f"Saved JSON to {filepath}")


def load_json(filepath: Union[str, Path]) -> Dict:
    """Load data from JSON file."""
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"JSON file not found: {filepath}")

    with open(filepath, 'r') as f:
        data = json.load(f)

    logger.debug(f"Loaded JSON from {filepath}")
    return data


def load_document(filepath: Union[str, Path]) -> Dict:
    """Load a project document from a JSON or YAML file."""
    filepath = Path(filepath)

    if filepath.suffix.lower() == '.json':
        return load_json(filepath)

    if filepath.suffix.lower() in ('.yml', '.yaml'):
        if not filepath.exists():
            raise FileNotFoundError(f"YAML file not found: {filepath}")
        import yaml
        with open(filepath, 'r') as f:
            data = yaml.safe_load(f) or {}
        logger.debug(f"Loaded YAML from {filepath}")
        return data

    raise ValidationError(f"Unsupported document format: {filepath}")


# ============================================================================
# HASHING
# ============================================================================

def _to_builtin(value: Any) -> Any:
    """Convert numpy scalars and arrays so json can encode them."""
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return str(value)


def content_hash(*parts: Any) -> str:
    """Calculate a SHA256 hash over the canonical JSON form of the parts.

    Objects exposing ``to_dict`` are hashed through it, so two structurally
    equal inputs always produce the same key.
    """
    payload = json.dumps(
        [_to_builtin(p) if hasattr(p, 'to_dict') else p for p in parts],
        sort_keys=True,
        default=_to_builtin,
        separators=(',', ':'),
    )
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


# ============================================================================
# CONVERSION UTILITIES
# ============================================================================

def cm2_to_m2(area_cm2: float) -> float:
    """Convert square centimeters to square meters."""
    return area_cm2 / 10000.0


def safe_divide(numerator: float, denominator: float,
                default: float = 0) -> float:
    """Safe division with default value for division by zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def format_area(area_m2: float, decimals: int = 2) -> str:
    """Format an area in square meters for reports."""
    return f"{area_m2:.{decimals}f} m²"


def format_currency(amount: Optional[float], currency: str = 'EUR') -> str:
    """Format a money amount for reports."""
    if amount is None:
        return "n/a"
    return f"{amount:,.2f} {currency}"


# ============================================================================
# PERFORMANCE UTILITIES
# ============================================================================

def timer(func):
    """Decorator to time function execution."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.time()
        result = func(*args, **kwargs)
        end = time.time()
        logger.debug(f"{func.__name__} took {end - start:.3f} seconds")
        return result
    return wrapper


# ============================================================================
# LOGGING UTILITIES
# ============================================================================

def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None):
    """
    Configure the root logger from TilingConfig.LOGGING.

    Args:
        log_level: Level name; the configured level when omitted
        log_file: Rotating log file; the configured file when omitted
    """
    from config_tiling import TilingConfig

    log_config = TilingConfig.LOGGING
    log_level = (log_level or log_config.get("level", "INFO")).upper()
    level = getattr(logging, log_level, logging.INFO)

    # Create formatter
    formatter = logging.Formatter(
        log_config['format'],
        datefmt=log_config['date_format']
    )

    # Setup handlers
    handlers = []

    # Console handler
    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    # File handler
    if log_file or log_config.get('file'):
        file_path = log_file or log_config['file']
        ensure_directory(Path(file_path).parent)

        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=log_config.get('max_bytes', 10*1024*1024),
            backupCount=log_config.get('backup_count', 5)
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True
    )

    logger.info(f"Logging configured: level={log_level}")


# ============================================================================
# ERROR HANDLING
# ============================================================================

class ValidationError(Exception):
    """Custom exception for malformed input documents and settings."""
    pass
