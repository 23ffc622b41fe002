#!/usr/bin/env -S uv run
"""
Shipping Benchmark Tool for logship

Writes buffer files to a temporary folder, ships them with LogShipper into an
InMemoryPublisher, and reports throughput and per-batch latency for a range
of batch posting limits.

Usage:
    uv run tools/benchmark_shipper.py
    uv run tools/benchmark_shipper.py --records 50000 --files 5
    uv run tools/benchmark_shipper.py --limits 10,100,1000 --payload-size 200
    uv run tools/benchmark_shipper.py --help
"""
# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "pydantic>=2.0",
#     "typer>=0.9.0",
#     "rich>=13.0",
# ]
# ///

from __future__ import annotations

import asyncio
import statistics
import sys
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from time import perf_counter

import typer

# Add parent directory to path to import logship
sys.path.insert(0, str(Path(__file__).parent.parent))

from logship import InMemoryPublisher, LogShipper, PublishResult, ShipperOptions

try:
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table

    RICH_AVAILABLE = True
except ImportError:
    RICH_AVAILABLE = False

app = typer.Typer(
    help="Benchmark logship buffer shipping",
    add_completion=False,
)


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------


@dataclass
class BenchmarkConfig:
    """Configuration for benchmark runs."""

    records: int = 10_000
    files: int = 3
    payload_size: int = 200
    posting_limits: list[int] = field(default_factory=lambda: [10, 50, 500])
    size_limit_bytes: int | None = None


@dataclass
class BenchmarkResult:
    """Results from shipping one buffer folder."""

    scenario: str
    records: int
    bytes_shipped: int
    total_time: float
    latencies: list[float]  # seconds, one per publish call

    @property
    def records_per_sec(self) -> float:
        return self.records / self.total_time if self.total_time > 0 else 0.0

    @property
    def mb_per_sec(self) -> float:
        if self.total_time <= 0:
            return 0.0
        return self.bytes_shipped / self.total_time / 1_000_000

    @property
    def batches(self) -> int:
        return len(self.latencies)

    @property
    def p50(self) -> float:
        return statistics.median(self.latencies) if self.latencies else 0.0

    @property
    def p95(self) -> float:
        if not self.latencies:
            return 0.0
        sorted_latencies = sorted(self.latencies)
        idx = int(len(sorted_latencies) * 0.95)
        return sorted_latencies[min(idx, len(sorted_latencies) - 1)]

    @property
    def max_latency(self) -> float:
        return max(self.latencies) if self.latencies else 0.0

    def format_latency_ms(self, seconds: float) -> str:
        """Format latency in milliseconds."""
        ms = seconds * 1000
        if ms < 1:
            return f"{ms:.3f}ms"
        elif ms < 10:
            return f"{ms:.2f}ms"
        else:
            return f"{ms:.1f}ms"


class TimedPublisher:
    """Wraps InMemoryPublisher and records the latency of each publish call."""

    def __init__(self) -> None:
        self.inner = InMemoryPublisher()
        self.latencies: list[float] = []

    async def publish(self, records: Sequence[str]) -> PublishResult:
        start = perf_counter()
        result = await self.inner.publish(records)
        self.latencies.append(perf_counter() - start)
        return result


# ---------------------------------------------------------------------------
# Buffer Setup
# ---------------------------------------------------------------------------


def write_buffer_files(folder: Path, config: BenchmarkConfig) -> int:
    """
    Fill `folder` with config.files buffer files holding config.records lines.

    Returns
    -------
    int : total bytes written
    """
    folder.mkdir(parents=True, exist_ok=True)
    per_file = max(1, config.records // config.files)
    payload = "x" * max(0, config.payload_size - 20)
    written = 0
    n = 0
    for index in range(config.files):
        count = per_file if index < config.files - 1 else config.records - n
        lines = (
            f'{{"n":{n + i},"p":"{payload}"}}\n' for i in range(count)
        )
        data = "".join(lines).encode("utf-8")
        (folder / f"bench-{index:04d}.json").write_bytes(data)
        written += len(data)
        n += count
    return written


# ---------------------------------------------------------------------------
# Benchmark Runner
# ---------------------------------------------------------------------------


async def run_scenario(
    posting_limit: int,
    config: BenchmarkConfig,
    temp_dir: Path,
) -> BenchmarkResult:
    """
    Ship a freshly written buffer folder to completion.

    Parameters
    ----------
    posting_limit : batch_posting_limit for this run
    config        : benchmark configuration
    temp_dir      : parent directory for the buffer folder

    Returns
    -------
    BenchmarkResult : throughput and per-batch latency
    """
    folder = temp_dir / f"limit-{posting_limit}"
    written = write_buffer_files(folder, config)

    options = ShipperOptions(
        buffer_base_filename=folder / "bench",
        batch_posting_limit=posting_limit,
        batch_size_limit_bytes=config.size_limit_bytes,
        retained_file_count_limit=None,
    )
    publisher = TimedPublisher()
    shipper = LogShipper(options, publisher=publisher)

    start = perf_counter()
    # Files are fully written, so one tick advances through every file.
    await shipper.tick()
    await shipper.stop()
    total_time = perf_counter() - start

    shipped = publisher.inner.records
    if len(shipped) != config.records:
        raise RuntimeError(
            f"Shipped {len(shipped)} of {config.records} records "
            f"with batch_posting_limit={posting_limit}"
        )

    return BenchmarkResult(
        scenario=f"limit-{posting_limit}",
        records=len(shipped),
        bytes_shipped=written,
        total_time=total_time,
        latencies=publisher.latencies,
    )


async def run_benchmark(config: BenchmarkConfig, temp_dir: Path) -> list[BenchmarkResult]:
    return [
        await run_scenario(limit, config, temp_dir) for limit in config.posting_limits
    ]


# ---------------------------------------------------------------------------
# Result Formatting
# ---------------------------------------------------------------------------


def format_results_rich(results: list[BenchmarkResult]) -> None:
    console = Console()
    console.print()
    console.print(
        Panel("[bold cyan]Shipping Benchmark Results[/bold cyan]", expand=False)
    )
    console.print()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Scenario", style="cyan", width=14)
    table.add_column("Records/sec", justify="right", style="green")
    table.add_column("MB/sec", justify="right")
    table.add_column("Batches", justify="right")
    table.add_column("P50", justify="right")
    table.add_column("P95", justify="right")
    table.add_column("Max", justify="right")

    for result in results:
        table.add_row(
            result.scenario,
            f"{result.records_per_sec:.1f}",
            f"{result.mb_per_sec:.2f}",
            str(result.batches),
            result.format_latency_ms(result.p50),
            result.format_latency_ms(result.p95),
            result.format_latency_ms(result.max_latency),
        )

    console.print(table)
    console.print()


def format_results_plain(results: list[BenchmarkResult]) -> None:
    print("\n" + "=" * 80)
    print("Shipping Benchmark Results")
    print("=" * 80)
    print(
        f"{'Scenario':<14} | {'Records/sec':>11} | {'MB/sec':>7} | {'Batches':>7} | "
        f"{'P50':>8} | {'P95':>8} | {'Max':>8}"
    )
    print("-" * 80)
    for result in results:
        print(
            f"{result.scenario:<14} | "
            f"{result.records_per_sec:>11.1f} | "
            f"{result.mb_per_sec:>7.2f} | "
            f"{result.batches:>7} | "
            f"{result.format_latency_ms(result.p50):>8} | "
            f"{result.format_latency_ms(result.p95):>8} | "
            f"{result.format_latency_ms(result.max_latency):>8}"
        )
    print("\n" + "=" * 80 + "\n")


def format_results(results: list[BenchmarkResult]) -> None:
    """Print results with Rich if available, plain text otherwise."""
    if RICH_AVAILABLE:
        format_results_rich(results)
    else:
        format_results_plain(results)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@app.command()
def main(
    records: int = typer.Option(
        10_000, "--records", "-n", help="Total records across all buffer files"
    ),
    files: int = typer.Option(3, "--files", "-f", help="Number of buffer files"),
    payload_size: int = typer.Option(
        200, "--payload-size", "-s", help="Approximate bytes per record"
    ),
    limits: str = typer.Option(
        "10,50,500", "--limits", "-l", help="Comma-separated batch posting limits"
    ),
    size_limit: int | None = typer.Option(
        None, "--size-limit", help="batch_size_limit_bytes for every run"
    ),
) -> None:
    """
    Benchmark LogShipper against an in-memory endpoint.

    Measures records/sec, MB/sec and publish latency percentiles for each
    batch posting limit, shipping the same buffer contents every time.
    """
    if records < 1 or files < 1:
        print("--records and --files must be positive", file=sys.stderr)
        raise typer.Exit(code=2)

    config = BenchmarkConfig(
        records=records,
        files=min(files, records),
        payload_size=payload_size,
        posting_limits=[int(v.strip()) for v in limits.split(",") if v.strip()],
        size_limit_bytes=size_limit,
    )

    with tempfile.TemporaryDirectory() as temp_dir_str:
        try:
            results = asyncio.run(run_benchmark(config, Path(temp_dir_str)))
        except Exception as e:
            print(f"\nError running benchmark: {e}", file=sys.stderr)
            raise typer.Exit(code=1) from e

    format_results(results)


if __name__ == "__main__":
    app()
