"""Tests for RawStats decoding and DockerStatsSource."""

import threading
from unittest.mock import MagicMock

import pytest
from docker.errors import APIError, NotFound

from container_metrics.monitoring.base import NetworkCounters, RawStats
from container_metrics.monitoring.docker_stats_source import DockerStatsSource

CONTAINER_ID = "0123456789abcdef0123456789abcdef"


def create_mock_stats(
    total_usage: int = 5_000_000_000,
    usermode: int = 3_000_000_000,
    kernelmode: int = 2_000_000_000,
    memory_usage: int = 100 * 1024 * 1024,
    memory_detail: dict | None = None,
    max_usage: int | None = 200 * 1024 * 1024,
) -> dict:
    """Create a mock Docker stats response."""
    memory_stats = {
        "usage": memory_usage,
        "limit": 1024 * 1024 * 1024,
        "stats": memory_detail if memory_detail is not None else {"rss": 50 * 1024 * 1024},
    }
    if max_usage is not None:
        memory_stats["max_usage"] = max_usage
    return {
        "cpu_stats": {
            "cpu_usage": {
                "total_usage": total_usage,
                "usage_in_usermode": usermode,
                "usage_in_kernelmode": kernelmode,
            },
            "system_cpu_usage": 10_000_000_000,
        },
        "memory_stats": memory_stats,
        "networks": {
            "eth0": {
                "rx_bytes": 1000,
                "rx_packets": 10,
                "rx_errors": 1,
                "rx_dropped": 2,
                "tx_bytes": 2000,
                "tx_packets": 20,
                "tx_errors": 3,
                "tx_dropped": 4,
            },
            "lo": {"rx_bytes": 5, "tx_bytes": 5},
        },
    }


class TestRawStats:
    """Tests for RawStats.from_docker and counter extraction."""

    def test_from_docker_cgroup_v1(self):
        raw = RawStats.from_docker(create_mock_stats())

        assert raw.cpu_total == 5_000_000_000
        assert raw.cpu_user == 3_000_000_000
        assert raw.cpu_system == 2_000_000_000
        assert raw.mem_usage == 100 * 1024 * 1024
        assert raw.mem_max_usage == 200 * 1024 * 1024
        assert raw.mem_rss == 50 * 1024 * 1024
        assert raw.networks["eth0"] == NetworkCounters(
            rx_bytes=1000,
            rx_packets=10,
            rx_errors=1,
            rx_dropped=2,
            tx_bytes=2000,
            tx_packets=20,
            tx_errors=3,
            tx_dropped=4,
        )

    def test_from_docker_cgroup_v2(self):
        """cgroup v2 reports anon memory and no max usage."""
        raw = RawStats.from_docker(
            create_mock_stats(memory_detail={"anon": 42 * 1024 * 1024}, max_usage=None)
        )

        assert raw.mem_rss == 42 * 1024 * 1024
        assert raw.mem_max_usage == 0

    def test_from_docker_missing_sections(self):
        raw = RawStats.from_docker({"cpu_stats": {}})

        assert raw == RawStats()

    def test_to_counters(self):
        counters = RawStats.from_docker(create_mock_stats()).to_counters("eth", "eth0")

        assert counters["cpu_usage"] == 5_000_000_000
        assert counters["cpu_user"] == 3_000_000_000
        assert counters["cpu_system"] == 2_000_000_000
        assert counters["mem_usage"] == 100 * 1024 * 1024
        assert counters["mem_max_usage"] == 200 * 1024 * 1024
        assert counters["mem_rss"] == 50 * 1024 * 1024
        assert counters["eth0.inbytes"] == 1000
        assert counters["eth0.outdrop"] == 4
        assert not any(key.startswith("lo.") for key in counters)

    def test_to_counters_without_networks(self):
        counters = RawStats.from_docker(create_mock_stats()).to_counters(
            "eth", "eth0", include_networks=False
        )

        assert set(counters) == {
            "cpu_user",
            "cpu_system",
            "cpu_usage",
            "mem_usage",
            "mem_max_usage",
            "mem_rss",
        }


class TestDockerStatsSource:
    """Tests for DockerStatsSource with a mocked Docker client."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def source(self, client):
        return DockerStatsSource(client)

    def test_fetch(self, source, client):
        client.api.stats.return_value = create_mock_stats(total_usage=7)

        raw = source.fetch(CONTAINER_ID, timeout=5.0, cancel=threading.Event())

        assert raw is not None
        assert raw.cpu_total == 7
        client.api.stats.assert_called_once_with(CONTAINER_ID, stream=False)

    def test_fetch_not_found(self, source, client):
        client.api.stats.side_effect = NotFound("No such container")

        assert source.fetch(CONTAINER_ID, timeout=5.0, cancel=threading.Event()) is None

    def test_fetch_not_running(self, source, client):
        client.api.stats.side_effect = APIError("Container abc is not running")

        assert source.fetch(CONTAINER_ID, timeout=5.0, cancel=threading.Event()) is None

    def test_fetch_other_api_error_propagates(self, source, client):
        client.api.stats.side_effect = APIError("server error")

        with pytest.raises(APIError):
            source.fetch(CONTAINER_ID, timeout=5.0, cancel=threading.Event())

    def test_fetch_cancelled(self, source, client):
        """Data arriving after cancellation is discarded."""
        client.api.stats.return_value = create_mock_stats()
        cancel = threading.Event()
        cancel.set()

        assert source.fetch(CONTAINER_ID, timeout=5.0, cancel=cancel) is None

    def test_fetch_empty_stats(self, source, client):
        """A stopped container yields an empty payload."""
        client.api.stats.return_value = {"read": "0001-01-01T00:00:00Z"}

        assert source.fetch(CONTAINER_ID, timeout=5.0, cancel=threading.Event()) is None

    def test_container_pid(self, source, client):
        client.containers.get.return_value.attrs = {"State": {"Pid": 4321, "Running": True}}

        assert source.container_pid(CONTAINER_ID) == 4321

    def test_container_pid_not_running(self, source, client):
        client.containers.get.return_value.attrs = {"State": {"Pid": 0, "Running": False}}

        assert source.container_pid(CONTAINER_ID) is None

    def test_container_pid_unknown(self, source, client):
        client.containers.get.side_effect = NotFound("No such container")

        assert source.container_pid(CONTAINER_ID) is None

    def test_is_available(self, source, client):
        client.ping.return_value = True
        assert source.is_available() is True

        client.ping.side_effect = ConnectionError("no daemon")
        assert source.is_available() is False
