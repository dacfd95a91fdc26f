"""
Tests for configuration management.
"""

import json

import pytest
import yaml

from tbclust.components.config import (
    Config, ConfigManager, load_config_file, to_bool, to_int, to_int_list, to_list
)
from tbclust.errors import ParameterError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('TBCLUST_K', 'TBCLUST_SEED', 'TBCLUST_MAX_ITERS', 'TBCLUST_N_INIT',
                 'TBCLUST_INIT', 'TBCLUST_EMPTY_CLUSTER', 'TBCLUST_N_COMPS',
                 'TBCLUST_SCALE', 'TBCLUST_EXPLORE_K', 'LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)


class TestConverters:
    """Tests for value conversion helpers."""

    def test_to_int(self):
        assert to_int("3") == 3
        assert to_int(None) is None
        assert to_int("three") is None

    def test_to_bool(self):
        assert to_bool("yes") is True
        assert to_bool("F") is False
        assert to_bool(0) is False
        assert to_bool("maybe") is None

    def test_to_list(self):
        assert to_list("a, b,,c") == ['a', 'b', 'c']
        assert to_list(('a',)) == ['a']
        assert to_list(3) is None

    def test_to_int_list(self):
        assert to_int_list("3,4,5") == [3, 4, 5]
        assert to_int_list([6, "7"]) == [6, 7]
        assert to_int_list("3,x") is None


class TestConfig:
    """Tests for the Config class."""

    def test_defaults(self):
        config = Config()

        assert config.get('kmeans.k') == 3
        assert config.get('kmeans.seed') == 1
        assert config.get('kmeans.max-iters') == 10
        assert config.get('kmeans.empty-cluster') == 'reseed'
        assert config.get('pca.n-comps') == 2
        assert config.get('pca.scale') is True
        assert config.get('explore.k-values') == [3, 4, 5, 6]
        assert config.get('loader.thousands') == ','

    def test_missing_path(self):
        config = Config()
        assert config.get('kmeans.nothing') is None
        assert config.get('nothing.at.all', 'fallback') == 'fallback'

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv('TBCLUST_K', '5')
        monkeypatch.setenv('TBCLUST_SEED', '99')
        monkeypatch.setenv('TBCLUST_SCALE', 'false')
        monkeypatch.setenv('TBCLUST_EXPLORE_K', '6,2,4')
        monkeypatch.setenv('LOG_LEVEL', 'DEBUG')

        config = Config()

        assert config.get('kmeans.k') == 5
        assert config.get('kmeans.seed') == 99
        assert config.get('pca.scale') is False
        assert config.get('explore.k-values') == [2, 4, 6]
        assert config.get('logging.level') == 'debug'

    def test_invalid_env_var_ignored(self, monkeypatch):
        monkeypatch.setenv('TBCLUST_K', 'many')
        assert Config().get('kmeans.k') == 3

    def test_overrides_win_over_env(self, monkeypatch):
        monkeypatch.setenv('TBCLUST_K', '5')
        config = Config({'kmeans': {'k': 4}})

        assert config.get('kmeans.k') == 4
        # Sibling keys survive the deep update
        assert config.get('kmeans.seed') == 1

    def test_inferred_k_values(self):
        config = Config({'explore': {'k-values': [5, 3, 5]}})
        assert config.get('explore.k-values') == [3, 5]

    def test_set(self):
        config = Config()
        config.set('kmeans.k', 7)
        config.set('extra.nested.value', 'x')

        assert config.get('kmeans.k') == 7
        assert config.get('extra.nested.value') == 'x'

    def test_to_dict_is_a_copy(self):
        config = Config()
        data = config.to_dict()
        data['kmeans']['k'] = 100
        assert config.get('kmeans.k') == 3

    def test_yaml_round_trip(self, tmp_path):
        path = str(tmp_path / "config.yaml")
        config = Config({'kmeans': {'k': 6}})
        config.save_to_file(path)

        with open(path) as f:
            assert yaml.safe_load(f)['kmeans']['k'] == 6

        loaded = Config()
        loaded.load_from_file(path)
        assert loaded.get('kmeans.k') == 6

    def test_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({'refine': {'k': 3}}))

        config = Config()
        config.load_from_file(str(path))

        assert config.get('refine.k') == 3
        assert config.get('refine.seed') == 1

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError):
            Config().save_to_file(str(tmp_path / "config.ini"))
        with pytest.raises(ValueError):
            load_config_file(str(tmp_path / "config.ini"))

    def test_malformed_files(self, tmp_path):
        bad_yaml = tmp_path / "bad.yaml"
        bad_yaml.write_text("kmeans: [k: 3\n")
        bad_json = tmp_path / "bad.json"
        bad_json.write_text("{\"kmeans\": ")
        listing = tmp_path / "list.yaml"
        listing.write_text("- 3\n- 4\n")

        for path in (bad_yaml, bad_json, listing):
            with pytest.raises(ParameterError):
                load_config_file(str(path))

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config_file(str(path)) == {}


class TestConfigManager:
    """Tests for the configuration singleton."""

    def test_singleton(self):
        first = ConfigManager.get_config()
        second = ConfigManager.get_config()
        assert first is second

    def test_overrides_reload(self):
        config = ConfigManager.get_config()
        ConfigManager.get_config({'kmeans': {'k': 8}})
        assert config.get('kmeans.k') == 8

    def test_reset(self):
        first = ConfigManager.get_config()
        ConfigManager.reset()
        assert ConfigManager.get_config() is not first
