"""
Unit tests for settings loading and validation.

Tests:
- Default settings
- YAML loading with environment variable substitution
- Validation errors
- ConfigManager caching and reload
"""

import pytest
from pydantic import ValidationError

from quadcluster.config.settings_loader import ConfigManager, Settings, get_settings
from quadcluster.utils.error_handling import ConfigurationError


@pytest.mark.unit
class TestSettings:
    """Test suite for the settings models."""

    def test_defaults(self, default_settings):
        assert default_settings.service.name == "quadcluster"
        assert default_settings.quadtree.max_elements == 64
        assert default_settings.quadtree.max_depth == 30
        assert default_settings.clustering.default_algorithm == "distance"
        assert default_settings.clustering.default_zoom == 10.0
        assert default_settings.clustering.algorithms.distance.cluster_distance_points == 100
        assert default_settings.clustering.algorithms.grid.grid_cell_size_points == 100.0
        assert default_settings.clustering.algorithms.simple.cluster_count == 10
        assert default_settings.logging.level == "INFO"
        assert default_settings.logging.format == "console"
        assert default_settings.logging.file.enabled is False

    def test_algorithm_params(self, default_settings):
        assert default_settings.algorithm_params("distance") == {
            "cluster_distance_points": 100,
            "max_elements": 64,
            "max_depth": 30,
        }
        assert default_settings.algorithm_params("grid") == {"grid_cell_size_points": 100.0}
        assert default_settings.algorithm_params("simple") == {"cluster_count": 10}

    def test_algorithm_normalised(self):
        settings = Settings(clustering={"default_algorithm": "Grid"})
        assert settings.clustering.default_algorithm == "grid"

    def test_unknown_algorithm(self):
        with pytest.raises(ValidationError):
            Settings(clustering={"default_algorithm": "kmeans"})

    def test_log_level_normalised(self):
        assert Settings(logging={"level": "warning"}).logging.level == "WARNING"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(logging={"level": "LOUD"})

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            Settings(logging={"format": "xml"})

    @pytest.mark.parametrize("section,values", [
        ("quadtree", {"max_elements": 0}),
        ("quadtree", {"max_depth": -1}),
        ("clustering", {"algorithms": {"distance": {"cluster_distance_points": 0}}}),
        ("clustering", {"algorithms": {"grid": {"grid_cell_size_points": 0}}}),
        ("clustering", {"algorithms": {"simple": {"cluster_count": 0}}}),
    ])
    def test_out_of_range_values(self, section, values):
        with pytest.raises(ValidationError):
            Settings(**{section: values})


@pytest.mark.unit
class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_load_yaml(self, settings_yaml, monkeypatch):
        monkeypatch.delenv("QUADCLUSTER_TEST_ENV", raising=False)

        settings = ConfigManager.load_config(str(settings_yaml))

        assert settings.service.name == "quadcluster-test"
        assert settings.service.environment == "testing"
        assert settings.quadtree.max_elements == 8
        assert settings.quadtree.max_depth == 12
        assert settings.clustering.default_algorithm == "grid"
        assert settings.clustering.default_zoom == 5.0
        assert settings.clustering.algorithms.distance.cluster_distance_points == 40
        # Sections missing from the file keep their defaults.
        assert settings.clustering.algorithms.simple.cluster_count == 10
        assert settings.logging.level == "DEBUG"
        assert settings.logging.format == "json"

    def test_env_substitution(self, settings_yaml, monkeypatch):
        monkeypatch.setenv("QUADCLUSTER_TEST_ENV", "staging")
        settings = ConfigManager.load_config(str(settings_yaml))
        assert settings.service.environment == "staging"

    def test_substitute_env_vars(self, monkeypatch):
        monkeypatch.setenv("QC_SET", "value")
        monkeypatch.delenv("QC_UNSET", raising=False)

        result = ConfigManager._substitute_env_vars({
            "a": "${QC_SET}",
            "b": "${QC_UNSET:fallback}",
            "c": "${QC_UNSET}",
            "d": ["x-${QC_SET}", 3],
            "e": 1.5,
        })

        assert result == {"a": "value", "b": "fallback", "c": "", "d": ["x-value", 3], "e": 1.5}

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager.load_config(str(tmp_path / "missing.yaml"))

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("QUADCLUSTER_CONFIG", raising=False)

        settings = ConfigManager.load_config()
        assert settings == Settings()

    def test_config_env_var(self, settings_yaml, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("QUADCLUSTER_CONFIG", str(settings_yaml))

        assert ConfigManager.load_config().service.name == "quadcluster-test"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ConfigManager.load_config(str(path)) == Settings()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("service: [unclosed\n")
        with pytest.raises(ConfigurationError):
            ConfigManager.load_config(str(path))

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("clustering:\n  default_algorithm: kmeans\n")
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager.load_config(str(path))
        assert exc_info.value.details["path"] == str(path)

    def test_settings_cached(self, settings_yaml):
        first = ConfigManager.load_config(str(settings_yaml))
        assert ConfigManager.load_config() is first
        assert get_settings() is first

    def test_reload(self, settings_yaml, tmp_path):
        ConfigManager.load_config(str(settings_yaml))

        other = tmp_path / "other.yaml"
        other.write_text("service:\n  name: reloaded\n")
        assert ConfigManager.reload_config(str(other)).service.name == "reloaded"

    def test_singleton(self):
        assert ConfigManager() is ConfigManager()

    def test_shipped_settings_file(self, monkeypatch):
        """The settings file in config/ validates."""
        from pathlib import Path

        monkeypatch.delenv("QUADCLUSTER_ALGORITHM", raising=False)
        path = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"

        settings = ConfigManager.load_config(str(path))
        assert settings.clustering.default_algorithm == "distance"
        assert settings.quadtree.max_elements == 64
