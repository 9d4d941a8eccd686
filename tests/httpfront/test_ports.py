"""
Tests for httpfront/ports.py.

Tests key functionality including:
- Cluster pattern parsing
- Worker index extraction
- Effective port resolution in plain and cluster mode
"""

import pytest

from httpfront.exceptions import ConfigError
from httpfront.ports import (
    PortResolver,
    is_cluster_pattern,
    parse_cluster_port,
    resolve_port,
    worker_index,
)

# =============================================================================
# Test Pattern Helpers
# =============================================================================


@pytest.mark.unit
class TestClusterPattern:
    """Test cluster port pattern recognition."""

    @pytest.mark.parametrize("value", ["3000++", "0++", "65000++"])
    def test_valid_patterns(self, value):
        assert is_cluster_pattern(value) is True

    @pytest.mark.parametrize(
        "value", ["3000", "3000+", "++", "a3000++", "3000++x", " 3000++", 3000, None]
    )
    def test_invalid_patterns(self, value):
        assert is_cluster_pattern(value) is False

    def test_parse_strips_suffix(self):
        assert parse_cluster_port("3000++") == 3000

    def test_parse_rejects_plain_port(self):
        with pytest.raises(ConfigError, match='"3000\\+\\+"'):
            parse_cluster_port("3000")

    @pytest.mark.parametrize(
        "value", ["\u0663\u0660\u0660\u0660++", "\uff13\uff10\uff10\uff10++"]
    )
    def test_non_ascii_digits_rejected(self, value):
        assert is_cluster_pattern(value) is False
        with pytest.raises(ConfigError):
            parse_cluster_port(value)


@pytest.mark.unit
class TestWorkerIndex:
    """Test worker index extraction from server ids."""

    def test_last_segment(self):
        assert worker_index("connector-2") == 2

    def test_multiple_dashes(self):
        assert worker_index("game-area-server-11") == 11

    def test_zero_index(self):
        assert worker_index("connector-0") == 0

    def test_id_without_dash_is_its_own_segment(self):
        assert worker_index("7") == 7

    @pytest.mark.parametrize(
        "server_id", ["connector", "connector-", "connector-x1", ""]
    )
    def test_non_numeric_index_rejected(self, server_id):
        with pytest.raises(ConfigError):
            worker_index(server_id)

    def test_missing_server_id_rejected(self):
        with pytest.raises(ConfigError, match="server id"):
            worker_index(None)

    def test_non_ascii_index_rejected(self):
        with pytest.raises(ConfigError, match="worker index"):
            worker_index("connector-\u0662")


# =============================================================================
# Test Resolution
# =============================================================================


@pytest.mark.unit
class TestResolvePort:
    """Test effective port derivation."""

    def test_cluster_adds_worker_index(self):
        assert resolve_port("3000++", "connector-2", is_cluster=True) == 3002

    def test_cluster_lowest_worker_uses_base(self):
        assert resolve_port("3000++", "connector-0", is_cluster=True) == 3000

    def test_cluster_requires_suffix(self):
        with pytest.raises(ConfigError) as exc_info:
            resolve_port("3000", "connector-2", is_cluster=True)

        assert exc_info.value.context["port"] == "3000"

    def test_cluster_rejects_integer_port(self):
        with pytest.raises(ConfigError):
            resolve_port(3000, "connector-2", is_cluster=True)

    def test_cluster_result_out_of_range(self):
        with pytest.raises(ConfigError, match="out of range"):
            resolve_port("65535++", "connector-1", is_cluster=True)

    def test_plain_port_unchanged(self):
        assert resolve_port(3000, "connector-2", is_cluster=False) == 3000

    def test_plain_port_ignores_missing_server_id(self):
        assert resolve_port(8087, None, is_cluster=False) == 8087

    def test_plain_port_must_be_integer(self):
        with pytest.raises(ConfigError):
            resolve_port("3000++", "connector-2", is_cluster=False)

    def test_plain_port_rejects_bool(self):
        with pytest.raises(ConfigError):
            resolve_port(True, None, is_cluster=False)


@pytest.mark.unit
class TestPortResolver:
    """Test PortResolver wrapper."""

    def test_cluster_resolver(self):
        assert PortResolver(is_cluster=True).resolve("4000++", "gate-3") == 4003

    def test_default_is_not_clustered(self):
        resolver = PortResolver()

        assert resolver.is_cluster is False
        assert resolver.resolve(4000, "gate-3") == 4000
