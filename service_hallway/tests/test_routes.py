"""
Unit tests for the destination tree configuration.
"""

import pytest

from shared.errors import ConfigurationError
from service_hallway.app.routes import (
    DEFAULT_BUTTON_COLOR,
    GroupDestination,
    LeafDestination,
    load_config_from_str,
    load_hallway_config,
)

CONFIG_TOML = """
[domain]
name = "hallway.example.com"

[[routes]]
icon = "wiki.svg"
label = "Wiki"
data = "https://wiki.example.com"

[[routes]]
icon = "tools.svg"
label = "Admin tools"
button_color = "#000000"
data = [
    { icon = "grafana.svg", label = "Grafana v2.1", data = "https://grafana.example.com" },
    { icon = "more.svg", label = "More", data = [
        { icon = "ci.svg", label = "CI", data = "https://ci.example.com/builds" },
    ] },
]
"""


class TestHallwayConfig:
    """Test cases for config.toml loading."""

    @pytest.fixture
    def config(self):
        return load_config_from_str(CONFIG_TOML)

    def test_domain(self, config):
        assert config.domain.name == "hallway.example.com"

    def test_leaf_and_group_shapes(self, config):
        wiki, tools = config.routes
        assert isinstance(wiki, LeafDestination)
        assert wiki.key == "https://wiki.example.com"
        assert wiki.is_group is False

        assert isinstance(tools, GroupDestination)
        assert tools.is_group is True
        assert [child.label for child in tools.children] == ["Grafana v2.1", "More"]

    def test_nested_groups(self, config):
        more = config.routes[1].children[1]
        assert isinstance(more, GroupDestination)
        assert isinstance(more.children[0], LeafDestination)
        assert more.children[0].key == "https://ci.example.com/builds"

    def test_button_color_default(self, config):
        assert config.routes[0].button_color == DEFAULT_BUTTON_COLOR == "#FEFFE8"
        assert config.routes[1].button_color == "#000000"

    def test_escaped_label(self, config):
        grafana = config.routes[1].children[0]
        assert grafana.escaped_label == "Grafana_v2_1"

    def test_empty_route_list(self):
        config = load_config_from_str('[domain]\nname = "d"\n')
        assert config.routes == ()

    def test_route_without_data(self):
        with pytest.raises(ConfigurationError):
            load_config_from_str('[domain]\nname = "d"\n[[routes]]\nicon = "i"\nlabel = "l"\n')

    def test_route_with_bad_data(self):
        with pytest.raises(ConfigurationError):
            load_config_from_str('[domain]\nname = "d"\n[[routes]]\nicon = "i"\nlabel = "l"\ndata = 3\n')

    def test_kind_in_config_is_ignored(self):
        config = load_config_from_str(
            '[domain]\nname = "d"\n[[routes]]\nicon = "i"\nlabel = "l"\nkind = "group"\ndata = "k"\n'
        )
        assert isinstance(config.routes[0], LeafDestination)
        assert config.routes[0].key == "k"

        with pytest.raises(ConfigurationError):
            load_config_from_str(
                '[domain]\nname = "d"\n[[routes]]\nicon = "i"\nlabel = "l"\nkind = "leaf"\nkey = "k"\n'
            )

    def test_missing_domain(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_str('[[routes]]\nicon = "i"\nlabel = "l"\ndata = "k"\n')
        assert exc_info.value.message == "Config can't be parsed"

    def test_invalid_toml(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_str("[domain\n")
        assert exc_info.value.message == "Config is not valid TOML"

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(CONFIG_TOML)
        assert len(load_hallway_config(path).routes) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_hallway_config(tmp_path / "config.toml")
        assert exc_info.value.message == "Config can't be read"
