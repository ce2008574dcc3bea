"""
Unit tests for policy document loading and the routing key index.
"""

import pytest
from unittest.mock import MagicMock, patch

from shared.errors import ConfigurationError
from service_hallway.app.policy import (
    Policy,
    PolicyIndex,
    load_policy_document,
    load_policy_from_str,
)

POLICY_YAML = """
routes:
  - from: https://wiki.example.com
    policy:
      - allow:
          or:
            - email:
                is: a@x.com
  - from: https://ci.example.com
    path: /builds
    prefix: /latest
    policy:
      - allow:
          or:
            - email:
                ends_with: "@x.com"
  - from: https://status.example.com
    allow_public_unauthenticated_access: true
    policy:
      - deny:
          or:
            - accept: true
"""


class TestPolicyLoader:
    """Test cases for policy loading."""

    def test_load_from_str(self):
        document = load_policy_from_str(POLICY_YAML)
        assert [route.routing_key for route in document.routes] == [
            "https://wiki.example.com",
            "https://ci.example.com/builds/latest",
            "https://status.example.com",
        ]

    def test_policy_kept_as_written(self):
        document = load_policy_from_str(POLICY_YAML)
        public = document.routes[2]
        assert public.allow_public_unauthenticated_access
        assert not public.policy.check_authorized("a@x.com")

    def test_null_policy_and_combinators(self):
        document = load_policy_from_str("""
routes:
  - from: https://a.example.com
    policy:
  - from: https://b.example.com
    policy:
      - allow:
          or:
          and:
""")
        assert document.routes[0].policy.root == []
        assert not document.routes[0].policy.check_authorized("a@x.com")
        assert document.routes[1].policy.check_authorized("a@x.com")

    def test_invalid_yaml(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_policy_from_str("routes: [unclosed")
        assert exc_info.value.code == "CONFIGURATION_ERROR"

    @pytest.mark.parametrize("text", ["", "- just\n- a list\n", "routes: 3\n"])
    def test_wrong_shape(self, text):
        with pytest.raises(ConfigurationError):
            load_policy_from_str(text)

    def test_unknown_criterion(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_policy_from_str("""
routes:
  - from: https://a.example.com
    policy:
      - allow:
          or:
            - claim/groups: admins
""")
        assert exc_info.value.message == "Policy document was malformed"

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "pomerium.yaml"
        path.write_text(POLICY_YAML)
        document = load_policy_document(path)
        assert len(document.routes) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_policy_document(tmp_path / "missing.yaml")
        assert exc_info.value.message == "Couldn't open policy document"
        assert exc_info.value.details["path"].endswith("missing.yaml")


class TestPolicyIndex:
    """Test cases for PolicyIndex."""

    @pytest.fixture
    def index(self):
        return PolicyIndex.from_document(load_policy_from_str(POLICY_YAML))

    def test_lookup_by_exact_key(self, index):
        assert "https://ci.example.com/builds/latest" in index
        assert index.get("https://ci.example.com/builds/latest").check_authorized("b@x.com")
        assert index.get("https://ci.example.com/builds") is None
        assert index.get("https://ci.example.com") is None

    def test_len_and_iter(self, index):
        assert len(index) == 3
        assert set(index) == {
            "https://wiki.example.com",
            "https://ci.example.com/builds/latest",
            "https://status.example.com",
        }

    def test_known_emails_are_matcher_literals(self, index):
        assert index.known_emails == frozenset({"a@x.com", "@x.com"})

    def test_public_route_gets_allow_all(self, index):
        public = index.get("https://status.example.com")
        assert public == Policy.allow_all()
        assert public.check_authorized("")

    def test_known_emails_include_public_route_literals(self):
        document = load_policy_from_str("""
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
""")
        index = PolicyIndex.from_document(document)

        assert index.known_emails == frozenset({"e@x.com", "@x.com"})
        assert index.get("pub") == Policy.allow_all()

    def test_duplicate_key_later_route_wins(self):
        document = load_policy_from_str("""
routes:
  - from: https://a.example.com
    policy:
      - allow:
          or:
            - email:
                is: first@x.com
  - from: https://a.example.com
    policy:
      - allow:
          or:
            - email:
                is: second@x.com
""")
        mock_logger = MagicMock()
        with patch("service_hallway.app.policy.index.get_logger", return_value=mock_logger):
            index = PolicyIndex.from_document(document)

        assert len(index) == 1
        assert index.get("https://a.example.com").check_authorized("second@x.com")
        assert not index.get("https://a.example.com").check_authorized("first@x.com")
        mock_logger.warning.assert_called_once()

    def test_index_is_read_only(self, index):
        with pytest.raises(TypeError):
            index._policies["https://new"] = Policy([])
