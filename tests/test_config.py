"""Tests for configuration dataclasses."""

import pytest

from tensor_street_generator.config import (
    CityConfig,
    NoiseParams,
    PolygonParams,
    StreamlineParams,
)


class TestStreamlineParams:
    """Test streamline parameter validation."""

    def test_layer_presets(self):
        assert StreamlineParams.minor().dsep == 20.0
        major = StreamlineParams.major()
        assert (major.dsep, major.dtest, major.dlookahead) == (100.0, 30.0, 200.0)
        main = StreamlineParams.main()
        assert (main.dsep, main.dtest, main.dlookahead) == (400.0, 200.0, 500.0)
        assert main.collide_early == 0.0

    @pytest.mark.parametrize("overrides", [
        {"dsep": 0.0},
        {"dstep": -1.0},
        {"dtest": 0.0},
        {"dstep": 30.0},
        {"path_iterations": 0},
        {"seed_tries": 0},
        {"collide_early": 1.5},
        {"joinangle": -0.1},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            StreamlineParams(**overrides)

    def test_dtest_clamped_to_dsep(self):
        params = StreamlineParams(dsep=10.0, dtest=25.0)
        assert params.dtest == 10.0

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="bogus"):
            StreamlineParams.from_dict({"dsep": 10.0, "bogus": 1})

    def test_json(self, tmp_path):
        path = tmp_path / "params.json"
        StreamlineParams.major().to_json(str(path))
        assert StreamlineParams.from_json(str(path)) == StreamlineParams.major()


class TestPolygonParams:
    """Test polygon parameter validation."""

    def test_presets(self):
        assert PolygonParams.parks().max_length == 20
        assert PolygonParams.blocks().max_length == 50

    @pytest.mark.parametrize("overrides", [
        {"max_length": 2},
        {"min_area": -1.0},
        {"max_aspect_ratio": 0.5},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            PolygonParams(**overrides)


class TestCityConfig:
    """Test the combined configuration."""

    def test_partial_sections_keep_layer_defaults(self):
        config = CityConfig.from_dict({
            "world_width": 500.0,
            "major": {"dsep": 80.0},
            "noise": {"global_noise": True},
        })
        assert config.world_width == 500.0
        assert config.major.dsep == 80.0
        assert config.major.dlookahead == 200.0
        assert config.main == StreamlineParams.main()
        assert config.noise.global_noise is True
        assert isinstance(config.noise, NoiseParams)

    def test_json(self, tmp_path):
        path = tmp_path / "city.json"
        config = CityConfig(world_width=300.0, seed=3)
        config.to_json(str(path))
        assert CityConfig.from_json(str(path)) == config

    def test_invalid(self):
        with pytest.raises(ValueError):
            CityConfig(world_height=0.0)
        with pytest.raises(ValueError):
            CityConfig.from_dict({"unknown": 1})
