"""Benchmark: FileContextStore save/load latency — avg and p99.

Measures per-call latency of save() and load() against one context
document as it grows.
"""
from __future__ import annotations

import json
import sys
import tempfile
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from context_store.storage.filesystem import FileContextStore

_WARMUP: int = 50
_ITERATIONS: int = 1_000


def _summarise(operation: str, latencies_ms: list[float]) -> dict[str, object]:
    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000
    return {
        "operation": operation,
        "iterations": n,
        "total_seconds": round(total, 4),
        "ops_per_second": round(n / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }


def bench_store_latency() -> list[dict[str, object]]:
    """Benchmark FileContextStore.save() and load() per-call latency."""
    results: list[dict[str, object]] = []
    with tempfile.TemporaryDirectory() as tmp:
        store = FileContextStore()
        store.initialize(tmp)

        for i in range(_WARMUP):
            store.save("bench", f"warmup-{i}", i)

        save_lats: list[float] = []
        for i in range(_ITERATIONS):
            t0 = time.perf_counter()
            store.save("bench", f"key-{i % 100}", {"n": i, "tags": ["a", "b"]})
            save_lats.append((time.perf_counter() - t0) * 1000)
        results.append(_summarise("file_store_save", save_lats))

        load_lats: list[float] = []
        for i in range(_ITERATIONS):
            t0 = time.perf_counter()
            store.load("bench", f"key-{i % 100}")
            load_lats.append((time.perf_counter() - t0) * 1000)
        results.append(_summarise("file_store_load", load_lats))

    for result in results:
        print(
            f"[bench_store_latency] {result['operation']}: "
            f"avg={result['avg_latency_ms']:.4f}ms  "
            f"p99={result['p99_latency_ms']:.4f}ms"
        )
    return results


if __name__ == "__main__":
    output = bench_store_latency()
    out_path = Path(__file__).parent / "results" / "store_latency.json"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(output, indent=2), encoding="utf-8")
