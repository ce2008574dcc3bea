"""
Unit tests for the access resolver and the identity access table.
"""

import pytest
from unittest.mock import MagicMock
from prometheus_client import CollectorRegistry

from shared.metrics import MetricsCollector
from service_hallway.app.access import ANONYMOUS, AccessResolver, IdentityAccessTable
from service_hallway.app.auth import Identity
from service_hallway.app.policy import PolicyIndex, load_policy_from_str
from service_hallway.app.routes import GroupDestination, load_config_from_str

CONFIG_TOML = """
[domain]
name = "hallway.example.com"

[[routes]]
icon = "1.svg"
label = "One"
data = "key1"

[[routes]]
icon = "g.svg"
label = "Group"
data = [
    { icon = "a.svg", label = "For A", data = "key-a" },
    { icon = "b.svg", label = "For B", data = "key-b" },
    { icon = "p.svg", label = "Public", data = "key2" },
]

[[routes]]
icon = "3.svg"
label = "Nobody"
data = "key3"

[[routes]]
icon = "u.svg"
label = "Unmatched"
data = "no-such-route"

[[routes]]
icon = "b.svg"
label = "Only B group"
data = [
    { icon = "b.svg", label = "B again", data = "key-b" },
]
"""

POLICY_YAML = """
routes:
  - from: key1
    policy:
      - allow:
          or:
            - email:
                is: a@x.com
  - from: key-a
    policy:
      - allow:
          or:
            - email:
                is: a@x.com
  - from: key-b
    policy:
      - allow:
          or:
            - email:
                is: b@x.com
  - from: key2
    allow_public_unauthenticated_access: true
  - from: key3
    policy: []
  - from: decoy
    policy:
      - allow:
          or:
            - email:
                is: c@x.com
"""


def labels(routes):
    return [route.label for route in routes]


@pytest.fixture
def routes():
    return load_config_from_str(CONFIG_TOML).routes


@pytest.fixture
def index():
    return PolicyIndex.from_document(load_policy_from_str(POLICY_YAML))


@pytest.fixture
def resolver(routes, index):
    return AccessResolver(routes, index)


class TestAccessResolver:
    """Test cases for AccessResolver."""

    def test_named_identity_sees_its_routes_in_config_order(self, resolver):
        visible = resolver.resolve("a@x.com")
        assert labels(visible) == ["One", "Group"]
        assert labels(visible[1].children) == ["For A", "Public"]

    def test_group_keeps_only_visible_children(self, resolver):
        group = resolver.resolve("b@x.com")[0]
        assert isinstance(group, GroupDestination)
        assert labels(group.children) == ["For B", "Public"]

    def test_group_without_visible_children_is_omitted(self, resolver):
        assert "Only B group" not in labels(resolver.resolve("a@x.com"))
        assert "Only B group" in labels(resolver.resolve("b@x.com"))

    def test_anonymous_sees_public_routes_only(self, resolver):
        visible = resolver.resolve(ANONYMOUS)
        assert labels(visible) == ["Group"]
        assert labels(visible[0].children) == ["Public"]

    def test_empty_policy_denies_even_known_identities(self, resolver):
        for email in ("a@x.com", "b@x.com", "c@x.com", ANONYMOUS):
            assert "Nobody" not in labels(resolver.resolve(email))

    def test_unmatched_routing_key_is_denied_and_logged(self, resolver, routes):
        resolver.logger = MagicMock()
        unmatched = routes[3]

        assert resolver.can_access(unmatched, "a@x.com") is False
        resolver.logger.warning.assert_called_once_with(
            "Routing key has no policy", routing_key="no-such-route", label="Unmatched"
        )

    def test_resolution_is_idempotent(self, resolver):
        assert resolver.resolve("a@x.com") == resolver.resolve("a@x.com")

    def test_source_tree_is_not_modified(self, resolver, routes):
        resolver.resolve("a@x.com")
        assert labels(routes[1].children) == ["For A", "For B", "Public"]


class TestIdentityAccessTable:
    """Test cases for IdentityAccessTable."""

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("hallway", registry=CollectorRegistry())

    @pytest.fixture
    def table(self, resolver, index, metrics):
        return IdentityAccessTable.build(resolver, index.known_emails, metrics=metrics)

    def test_known_identities(self, table):
        assert set(table.emails) == {"a@x.com", "b@x.com", "c@x.com"}
        assert len(table) == 3
        assert "a@x.com" in table
        assert "stranger@y.com" not in table

    def test_lookup(self, table):
        assert labels(table.lookup("a@x.com")) == ["One", "Group"]
        assert table.lookup("c@x.com")[0].label == "Group"
        assert table.lookup("stranger@y.com") is None

    def test_view_for_known_identity(self, table):
        view = table.view_for(Identity(email="a@x.com", name="A"), "bg.avif")
        assert view.name == "A"
        assert view.email == "a@x.com"
        assert view.background == "bg.avif"
        assert labels(view.accessible_routes) == ["One", "Group"]

    def test_view_for_unregistered_identity_falls_back_to_anonymous(self, table, metrics):
        table.logger = MagicMock()
        view = table.view_for(Identity(email="stranger@y.com", name="S"), "bg.avif")

        assert view.email == "stranger@y.com"
        assert view.accessible_routes == table.anonymous
        table.logger.warning.assert_called_once()
        assert table.logger.warning.call_args[0][0] == "Unregistered user accessed the hallway"

        counter = metrics.registry.get_sample_value("hallway_unregistered_identities_total")
        assert counter == 1.0

    def test_size_gauge(self, table, metrics):
        assert metrics.registry.get_sample_value("hallway_access_table_identities") == 3.0

    def test_entries_are_read_only(self, table):
        with pytest.raises(TypeError):
            table._entries["new@x.com"] = ()

    def test_identity_named_only_by_public_route_gets_personal_view(self):
        config = load_config_from_str(
            '[domain]\nname = "d"\n'
            '[[routes]]\nicon = "p.svg"\nlabel = "Public"\ndata = "pub"\n'
            '[[routes]]\nicon = "t.svg"\nlabel = "Team"\ndata = "team"\n'
        )
        index = PolicyIndex.from_document(load_policy_from_str("""
routes:
  - from: pub
    allow_public_unauthenticated_access: true
    policy:
      - allow:
          or:
            - email:
                is: e@x.com
  - from: team
    policy:
      - allow:
          or:
            - email:
                ends_with: "@x.com"
"""))
        table = IdentityAccessTable.build(AccessResolver(config.routes, index), index.known_emails)

        assert labels(table.lookup("e@x.com")) == ["Public", "Team"]
        assert labels(table.anonymous) == ["Public"]
