"""
Test Tiling Configuration
=========================
Dot-key access, file loading and validation of TilingConfig.
"""

import json

import pytest

from config_tiling import TilingConfig
from tile_models import PricingConfig


def test_get_reads_nested_keys():
    assert TilingConfig.get('PREVIEW.max_tiles') == 12000
    assert TilingConfig.get('GEOMETRY.circle_segments') == 48
    assert TilingConfig.get('PREVIEW.missing', 'fallback') == 'fallback'


def test_set_updates_a_section(restore_config):
    TilingConfig.set('PRICING.currency', 'CHF')
    assert PricingConfig.from_dict({}).currency == 'CHF'

    with pytest.raises(KeyError):
        TilingConfig.set('NOPE.value', 1)


def test_from_file_merges_partial_sections(restore_config, tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({'PREVIEW': {'max_tiles': 500}}))

    TilingConfig.from_file(str(path))

    assert TilingConfig.PREVIEW['max_tiles'] == 500
    assert TilingConfig.PREVIEW['full_tile_tolerance'] == 0.999


def test_yaml_round_trip(restore_config, tmp_path):
    path = tmp_path / "settings.yaml"
    TilingConfig.set('WASTE.kerf_cm', 0.25)
    TilingConfig.save_to_file(str(path))

    TilingConfig.set('WASTE.kerf_cm', 0.0)
    TilingConfig.from_file(str(path))
    assert TilingConfig.WASTE['kerf_cm'] == 0.25


def test_unsupported_file_format(tmp_path):
    path = tmp_path / "settings.ini"
    path.write_text("[x]")
    with pytest.raises(ValueError):
        TilingConfig.from_file(str(path))


def test_validate_config_flags_bad_values(restore_config):
    assert TilingConfig.validate_config() == []

    TilingConfig.set('PREVIEW.full_tile_tolerance', 1.5)
    TilingConfig.set('SKIRTING.type', 'glued')
    warnings = TilingConfig.validate_config()

    assert len(warnings) == 2
    assert any("tolerance" in w for w in warnings)
