"""
Unit tests for the backend pool and RPC list loading.
"""

import json
import random
from collections import Counter

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_proxy.app.pool.backend_pool import BackendEndpoint, BackendPool, load_rpc_lists
from shared.errors import ConfigurationError


class TestBackendEndpoint:
    """Test cases for BackendEndpoint."""

    def test_from_url_keeps_host_and_path(self):
        endpoint = BackendEndpoint.from_url("https://rpc.example.com/v1/abc")
        assert endpoint.host == "rpc.example.com"
        assert endpoint.path == "/v1/abc"
        assert endpoint.url == "https://rpc.example.com/v1/abc"

    def test_from_url_defaults_path(self):
        endpoint = BackendEndpoint.from_url("https://rpc.example.com")
        assert endpoint.path == "/"

    def test_from_url_keeps_port_and_query(self):
        endpoint = BackendEndpoint.from_url("https://rpc.example.com:8443/?api-key=k")
        assert endpoint.host == "rpc.example.com:8443"
        assert endpoint.path == "/?api-key=k"

    def test_from_url_without_host(self):
        with pytest.raises(ConfigurationError):
            BackendEndpoint.from_url("not-a-url")


class TestBackendPool:
    """Test cases for BackendPool selection."""

    @pytest.fixture
    def pool(self):
        return BackendPool.from_urls(
            ["https://a.example/", "https://b.example/", "https://c.example/"],
            rng=random.Random(1234),
        )

    def test_empty_pool_rejected(self):
        with pytest.raises(ConfigurationError):
            BackendPool([])

    def test_routing_id_selects_modulo(self, pool):
        """Test /5 on a pool of three routes to the third endpoint."""
        assert pool.select_index(5) == 2
        assert pool.select(5).host == "c.example"

    @pytest.mark.parametrize("routing_id", [0, 1, 2, 3, 17, 1000001, -1, -5, -300])
    def test_routing_id_index_in_range(self, pool, routing_id):
        index = pool.select_index(routing_id)
        assert 0 <= index < len(pool)
        assert index == routing_id % 3

    def test_negative_routing_id_normalized(self, pool):
        assert pool.select_index(-1) == 2

    def test_random_selection_is_uniform(self, pool):
        """Test selection without routing id spreads evenly over the pool."""
        trials = 30000
        counts = Counter(pool.select_index(None) for _ in range(trials))

        assert set(counts) == {0, 1, 2}
        for count in counts.values():
            assert abs(count - trials / 3) < trials * 0.03

    def test_endpoints_are_immutable(self, pool):
        assert isinstance(pool.endpoints, tuple)
        assert len(pool) == 3


class TestLoadRpcLists:
    """Test cases for rpc_list.json loading."""

    def test_load_valid_file(self, tmp_path):
        path = tmp_path / "rpc_list.json"
        path.write_text(json.dumps({
            "default_rpc_list": ["https://a.example/", "https://b.example/"],
            "submit_rpc_list": ["https://s.example/"],
        }))

        lists = load_rpc_lists(path)
        assert lists.default_rpc_list == ["https://a.example/", "https://b.example/"]
        assert lists.submit_rpc_list == ["https://s.example/"]

        pool = BackendPool.from_file(path)
        assert [e.host for e in pool.endpoints] == ["a.example", "b.example"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_rpc_lists(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "rpc_list.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_rpc_lists(path)

    def test_empty_default_list(self, tmp_path):
        path = tmp_path / "rpc_list.json"
        path.write_text(json.dumps({"default_rpc_list": []}))
        with pytest.raises(ConfigurationError):
            load_rpc_lists(path)
