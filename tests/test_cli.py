"""Tests for the promrdf command line."""

import asyncio
import os
from unittest.mock import AsyncMock, patch

import pytest
import rdflib
import respx
from httpx import Response
from promrdf.core.errors import ExitCode
from promrdf.discovery.providers import (
    KubernetesWorkloadProvider,
    ProviderHealth,
    WorkloadProviderError,
)
from promrdf.main import build_parser, main
from promrdf.store import GraphStore

WORKLOADS = """
workloads:
  - namespace: shop
    name: checkout-7d9f
    address: 10.0.3.17
    owner_kind: ReplicaSet
    annotations:
      prometheus.io/scrape: "true"
      prometheus.io/port: "8081"
  - namespace: shop
    name: cart-5c2a
    address: 10.0.3.18
  - namespace: shop
    name: broken
    address: 10.0.3.19
    annotations:
      prometheus.io/scrape: "true"
      prometheus.io/port: "abc"
"""

METRICS = """\
# TYPE jvm_threads_live gauge
jvm_threads_live 42
# TYPE http_requests_total counter
http_requests_total{method="post",code="200"} 1027
"""

THREADS_LINE = (
    "<https://promrdf.dev/workload/shop/checkout-7d9f> "
    "<https://promrdf.dev/metric/jvm_threads_live> "
    '"42.0"^^<http://www.w3.org/2001/XMLSchema#double> .'
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every command from an empty directory with no PROMRDF_ environment."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("PROMRDF_"):
            monkeypatch.delenv(name)


@pytest.fixture
def workloads_file(tmp_path):
    path = tmp_path / "workloads.yaml"
    path.write_text(WORKLOADS)
    return path


def run(*argv):
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    return exc_info.value.code


def empty_store(tmp_path):
    path = tmp_path / "graph.db"

    async def create():
        async with GraphStore(path):
            pass

    asyncio.run(create())
    return path


def scan(store, workloads_file, *extra):
    with respx.mock(assert_all_called=False) as router:
        router.get("http://10.0.3.17:8081/metrics").mock(return_value=Response(200, text=METRICS))
        return run(
            "--store", str(store), "scan-metrics", "--workloads-file", str(workloads_file), *extra
        )


class TestParser:
    """Tests for argument parsing."""

    def test_global_options(self):
        """Test global options are parsed before the subcommand."""
        args = build_parser().parse_args(
            ["--store", "g.db", "-n", "shop", "--log-level", "debug", "export-turtle"]
        )

        assert str(args.store_path) == "g.db"
        assert args.namespace == "shop"
        assert args.log_level == "DEBUG"
        assert args.command == "export-turtle"

    def test_scan_options(self):
        """Test scan-metrics override options are parsed with their types."""
        args = build_parser().parse_args(
            ["scan-metrics", "--concurrency", "4", "--timeout", "2.5", "--max-bytes", "100"]
        )

        assert args.concurrency == 4
        assert args.timeout == 2.5
        assert args.max_bytes == 100

    def test_no_command(self, capsys):
        """Test running without a command prints help and exits 2."""
        assert run() == 2
        assert "scan-metrics" in capsys.readouterr().out


class TestScanAndExport:
    """End-to-end command flows against a static inventory."""

    def test_scan_then_export_triples(self, tmp_path, workloads_file, capsys):
        """Test a scan followed by N-Triples export of the scraped workload."""
        store = tmp_path / "graph.db"

        assert scan(store, workloads_file) == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert "Skipped shop/broken" in out
        assert "Committed" in out

        triples = tmp_path / "out.nt"
        assert run("--store", str(store), "--triples-file", str(triples), "export-triples") == 0

        lines = triples.read_text(encoding="utf-8").splitlines()
        assert THREADS_LINE in lines
        assert not any("cart-5c2a" in line or "broken" in line for line in lines)

    def test_export_turtle_round_trips(self, tmp_path, workloads_file):
        """Test Turtle and N-Triples exports describe the same graph."""
        store = tmp_path / "graph.db"
        assert scan(store, workloads_file) == 0

        assert run("--store", str(store), "export-triples") == 0
        assert run("--store", str(store), "export-turtle") == 0

        # Default output files land in the working directory
        from_nt = rdflib.Graph().parse(tmp_path / "metrics.nt", format="nt")
        from_ttl = rdflib.Graph().parse(tmp_path / "metrics.ttl", format="turtle")
        assert len(from_nt) > 0
        assert set(from_nt) == set(from_ttl)

    def test_rescan_updates_value(self, tmp_path, workloads_file):
        """Test a second scan replaces the stored value."""
        store = tmp_path / "graph.db"
        assert scan(store, workloads_file) == 0

        with respx.mock:
            respx.get("http://10.0.3.17:8081/metrics").mock(
                return_value=Response(200, text="jvm_threads_live 50\n")
            )
            assert run("--store", str(store), "scan-metrics", "-w", str(workloads_file)) == 0

        assert run("--store", str(store), "export-triples") == 0
        text = (tmp_path / "metrics.nt").read_text(encoding="utf-8")
        assert '"50.0"^^<http://www.w3.org/2001/XMLSchema#double>' in text
        assert '"42.0"' not in text

    def test_unreachable_target_is_not_fatal(self, tmp_path, workloads_file, capsys):
        """Test an unreachable target is reported without failing the scan."""
        store = tmp_path / "graph.db"

        with respx.mock:
            respx.get("http://10.0.3.17:8081/metrics").mock(return_value=Response(404))
            code = run("--store", str(store), "scan-metrics", "-w", str(workloads_file))

        assert code == ExitCode.SUCCESS
        assert "unreachable" in capsys.readouterr().out

    def test_store_path_from_environment(self, tmp_path, workloads_file, monkeypatch):
        """Test the store path is read from PROMRDF_STORE_PATH."""
        store = tmp_path / "env" / "graph.db"
        monkeypatch.setenv("PROMRDF_STORE_PATH", str(store))

        with respx.mock:
            route = respx.get("http://10.0.3.17:8081/metrics")
            route.mock(return_value=Response(200, text=METRICS))
            assert run("scan-metrics", "-w", str(workloads_file)) == 0

        assert store.exists()

    def test_report_lists_scans(self, tmp_path, workloads_file, capsys):
        """Test report lists a recorded scan."""
        store = tmp_path / "graph.db"
        assert scan(store, workloads_file) == 0
        capsys.readouterr()

        assert run("--store", str(store), "report") == 0

        assert "Recent scans" in capsys.readouterr().out

    def test_report_on_empty_store(self, tmp_path, capsys):
        """Test report on a store without scans."""
        store = empty_store(tmp_path)

        assert run("--store", str(store), "report") == 0

        assert "No scans recorded" in capsys.readouterr().out


class TestExitCodes:
    """Fatal errors map to documented exit codes."""

    def test_corrupt_store(self, tmp_path, workloads_file):
        """Test a corrupt store exits with the store error code."""
        store = tmp_path / "graph.db"
        store.write_bytes(b"garbage, not sqlite\n" * 200)

        assert scan(store, workloads_file) == ExitCode.STORE_ERROR
        assert run("--store", str(store), "export-triples") == ExitCode.STORE_ERROR

    def test_unreadable_workloads_file(self, tmp_path):
        """Test a missing workloads file is a configuration error."""
        code = run(
            "--store", str(tmp_path / "graph.db"),
            "scan-metrics", "-w", str(tmp_path / "missing.yaml"),
        )

        assert code == ExitCode.CONFIG_ERROR

    def test_invalid_concurrency(self, tmp_path, workloads_file):
        """Test a non-positive concurrency is a configuration error."""
        assert scan(tmp_path / "graph.db", workloads_file, "--concurrency", "0") == (
            ExitCode.CONFIG_ERROR
        )

    def test_invalid_environment_setting(self, tmp_path, monkeypatch):
        """Test an invalid environment setting is a configuration error."""
        monkeypatch.setenv("PROMRDF_SCRAPE_CONCURRENCY", "many")

        assert run("--store", str(tmp_path / "graph.db"), "report") == ExitCode.CONFIG_ERROR

    def test_invalid_log_level(self, tmp_path, monkeypatch):
        """Test an unknown log level is a configuration error."""
        monkeypatch.setenv("PROMRDF_LOG_LEVEL", "verbose")

        assert run("--store", str(tmp_path / "graph.db"), "report") == ExitCode.CONFIG_ERROR

    def test_cluster_unreachable(self, tmp_path):
        """Test a failed pod listing exits with the provider error code."""
        healthy = ProviderHealth(healthy=True, message="Connected to Kubernetes API")
        with patch.object(
            KubernetesWorkloadProvider, "health_check", AsyncMock(return_value=healthy)
        ), patch.object(
            KubernetesWorkloadProvider,
            "list_workloads",
            new_callable=AsyncMock,
            side_effect=WorkloadProviderError("Failed to list pods: connection refused"),
        ):
            code = run("--store", str(tmp_path / "graph.db"), "-n", "shop", "scan-metrics")

        assert code == ExitCode.PROVIDER_ERROR

    def test_cluster_health_check_fails(self, tmp_path):
        """Test an unhealthy cluster fails the scan before any pod is listed."""
        unhealthy = ProviderHealth(healthy=False, message="Failed to load Kubernetes config")
        listing = AsyncMock()
        with patch.object(
            KubernetesWorkloadProvider, "health_check", AsyncMock(return_value=unhealthy)
        ), patch.object(KubernetesWorkloadProvider, "list_workloads", listing):
            code = run("--store", str(tmp_path / "graph.db"), "scan-metrics")

        assert code == ExitCode.PROVIDER_ERROR
        listing.assert_not_awaited()

    def test_interrupted(self, tmp_path, workloads_file):
        """Test Ctrl-C during a scan exits with 130."""
        with patch("promrdf.cli.scan.run_scan", side_effect=KeyboardInterrupt):
            code = run(
                "--store", str(tmp_path / "graph.db"), "scan-metrics", "-w", str(workloads_file)
            )

        assert code == ExitCode.INTERRUPTED

    def test_unwritable_output(self, tmp_path):
        """Test an unwritable output file is a configuration error."""
        store = empty_store(tmp_path)
        target = tmp_path / "missing-dir" / "out.nt"

        code = run("--store", str(store), "--triples-file", str(target), "export-triples")

        assert code == ExitCode.CONFIG_ERROR

    @pytest.mark.parametrize("command", ["export-triples", "export-turtle", "report"])
    def test_missing_store_is_not_created(self, tmp_path, command):
        """Test readers fail on a mistyped store path instead of creating it."""
        store = tmp_path / "typo" / "graph.db"

        assert run("--store", str(store), command) == ExitCode.STORE_ERROR
        assert not store.exists()
        assert not (tmp_path / "metrics.nt").exists()
