#!/usr/bin/env python3
"""
PODBench: Timing Suite for podsign

Measures the cost of each layer a POD goes through:
    Poseidon permutation → Baby Jubjub scalar multiplication
    → EdDSA-Poseidon sign / verify → POD encode / verify

Usage:
    podbench poseidon        [--output DIR] [--iterations N]
    podbench curve           [--output DIR] [--iterations N]
    podbench eddsa           [--output DIR] [--iterations N]
    podbench pod             [--output DIR] [--iterations N] [--entries N]
    podbench all             [--output DIR]
"""

from __future__ import annotations
import argparse
import json
import platform
import statistics
import sys
import time
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Callable, Dict, List

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from podsign import (
    Attribute,
    AttributeType,
    BASE8,
    EdDSAPoseidonSigner,
    encode,
    get_params,
    poseidon,
    scalar_multiply,
    verify,
    verify_pod,
)


SEED = bytes(range(32))


@dataclass
class TimingResult:
    """Timing for one operation."""
    name: str
    iterations: int
    total_time_ms: float
    median_latency_us: float
    p95_latency_us: float
    throughput_ops: float


def time_operation(name: str, fn: Callable[[], Any], iterations: int) -> TimingResult:
    """Run `fn` once to warm up, then `iterations` timed times."""
    fn()

    latencies = []
    start_total = time.perf_counter()
    for _ in range(iterations):
        start = time.perf_counter()
        fn()
        latencies.append((time.perf_counter() - start) * 1e6)
    total_ms = (time.perf_counter() - start_total) * 1000

    latencies.sort()
    p95_index = min(len(latencies) - 1, int(len(latencies) * 0.95))
    return TimingResult(
        name=name,
        iterations=iterations,
        total_time_ms=total_ms,
        median_latency_us=statistics.median(latencies),
        p95_latency_us=latencies[p95_index],
        throughput_ops=iterations / (total_ms / 1000) if total_ms > 0 else 0.0,
    )


class PODBench:
    """Main benchmark orchestrator."""

    def __init__(self, output_dir: Path, iterations: int = 20):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.iterations = iterations

    def _report(self, title: str, results: List[TimingResult]) -> List[Dict[str, Any]]:
        print("=" * 60)
        print(title)
        print("=" * 60)
        for result in results:
            print(f"  {result.name:24s}: {result.median_latency_us:10.1f} µs, "
                  f"{result.throughput_ops:8.1f} ops/s")
        return [asdict(r) for r in results]

    def run_poseidon(self) -> List[Dict[str, Any]]:
        """Poseidon over 1, 2, 5 and 16 inputs."""
        start = time.perf_counter()
        for width in (2, 3, 6, 17):
            get_params(width)
        print(f"Round constant generation: {(time.perf_counter() - start) * 1000:.1f} ms")

        results = [
            time_operation(f"poseidon[{n}]", lambda n=n: poseidon(range(1, n + 1)), self.iterations)
            for n in (1, 2, 5, 16)
        ]
        return self._report("Poseidon Hash", results)

    def run_curve(self) -> List[Dict[str, Any]]:
        """Fixed-base and 256-bit scalar multiplication."""
        scalar = (1 << 251) + 12345
        results = [
            time_operation("scalar_multiply", lambda: scalar_multiply(BASE8, scalar), self.iterations),
        ]
        return self._report("Baby Jubjub", results)

    def run_eddsa(self) -> List[Dict[str, Any]]:
        """Key derivation, signing and verification."""
        signer = EdDSAPoseidonSigner(SEED)
        packed = signer.sign(42)
        results = [
            time_operation("derive_key", lambda: EdDSAPoseidonSigner(SEED), self.iterations),
            time_operation("sign", lambda: signer.sign(42), self.iterations),
            time_operation("verify", lambda: verify(packed.public_key, 42, packed.signature),
                           self.iterations),
        ]
        return self._report("EdDSA-Poseidon", results)

    def run_pod(self, entries: int = 8) -> List[Dict[str, Any]]:
        """Encode and verify a POD with `entries` attributes."""
        attributes = [
            Attribute(f"key{i}", AttributeType.INT if i % 2 else AttributeType.STRING,
                      i if i % 2 else f"value{i}")
            for i in range(entries)
        ]
        record = encode(SEED, attributes, pod_id="bench")
        results = [
            time_operation(f"encode[{entries}]",
                           lambda: encode(SEED, attributes, pod_id="bench"), self.iterations),
            time_operation(f"verify_pod[{entries}]", lambda: verify_pod(record), self.iterations),
        ]
        return self._report("POD", results)

    def run_all(self, entries: int = 8) -> Dict[str, Any]:
        """Run all benchmarks and write report.json."""
        start_time = time.perf_counter()
        results = {
            'poseidon': self.run_poseidon(),
            'curve': self.run_curve(),
            'eddsa': self.run_eddsa(),
            'pod': self.run_pod(entries),
        }
        elapsed = (time.perf_counter() - start_time) * 1000
        return self._write_report(results, elapsed)

    def _write_report(self, results: Dict[str, Any], total_duration_ms: float) -> Dict[str, Any]:
        report = {
            'timestamp': time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            'environment': {
                'python': platform.python_version(),
                'implementation': platform.python_implementation(),
                'machine': platform.machine(),
            },
            'iterations': self.iterations,
            'total_duration_ms': total_duration_ms,
            'results': results,
        }

        report_path = self.output_dir / 'report.json'
        with open(report_path, 'w') as f:
            json.dump(report, f, indent=2)

        print(f"\nWritten to: {report_path}")
        print(f"Total duration: {total_duration_ms:.2f} ms")
        return report


def main():
    parser = argparse.ArgumentParser(
        description='PODBench: Timing Suite for podsign',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    podbench all                    # Run all benchmarks
    podbench eddsa -n 50            # Sign/verify only, 50 iterations
        """
    )

    parser.add_argument(
        'command',
        choices=['poseidon', 'curve', 'eddsa', 'pod', 'all'],
        help='Benchmark command to run'
    )

    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=Path('./bench_output'),
        help='Output directory for results'
    )

    parser.add_argument(
        '--iterations', '-n',
        type=int,
        default=20,
        help='Timed iterations per operation (default: 20)'
    )

    parser.add_argument(
        '--entries',
        type=int,
        default=8,
        help='Attributes per POD for the pod benchmark (default: 8)'
    )

    args = parser.parse_args()

    bench = PODBench(args.output, args.iterations)

    if args.command == 'poseidon':
        bench.run_poseidon()
    elif args.command == 'curve':
        bench.run_curve()
    elif args.command == 'eddsa':
        bench.run_eddsa()
    elif args.command == 'pod':
        bench.run_pod(args.entries)
    elif args.command == 'all':
        bench.run_all(args.entries)


if __name__ == '__main__':
    main()
