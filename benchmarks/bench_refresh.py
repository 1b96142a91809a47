"""Benchmark: vault refresh latency, cold versus warm cache (p50/p95/mean).

A refresh scans the vault, extracts every file (or reuses cached records)
and evaluates the queries.  The vault is generated in a temporary
directory.
"""
from __future__ import annotations

import json
import sys
import tempfile
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vaulttasks.config import SessionConfig
from vaulttasks.session import TaskSession

_FILES: int = 200
_TASKS_PER_FILE: int = 25
_WARMUP: int = 3
_ITERATIONS: int = 50

_QUERY = """## Due soon
```tasks
not done
due before 2030-01-01
sort by due
```

## By folder
```tasks
not done
group by folder
sort by priority
```
"""

_GLYPHS = ("", "🔺", "⏫", "🔼", "🔽", "⏬")


def build_vault(root: Path, files: int = _FILES, tasks_per_file: int = _TASKS_PER_FILE) -> Path:
    """Write ``files`` notes of ``tasks_per_file`` tasks each under ``root``."""
    for index in range(files):
        folder = root / f"area-{index % 10}"
        folder.mkdir(parents=True, exist_ok=True)
        lines = [f"# Note {index}", ""]
        for task in range(tasks_per_file):
            mark = "x" if task % 4 == 0 else " "
            day = 1 + (task % 28)
            glyph = _GLYPHS[task % len(_GLYPHS)]
            lines.append(f"- [{mark}] task {index}.{task} 📅 2029-02-{day:02d} {glyph}".rstrip())
            lines.append("Some prose between tasks.")
        (folder / f"note-{index}.md").write_text("\n".join(lines) + "\n", encoding="utf-8")
    query_path = root / "dashboard.md"
    query_path.write_text(_QUERY, encoding="utf-8")
    return query_path


def _summarize(operation: str, latencies_ms: list[float], records: int) -> dict[str, object]:
    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000
    return {
        "operation": operation,
        "iterations": n,
        "records": records,
        "total_seconds": round(total, 4),
        "ops_per_second": round(n / total, 1) if total else 0.0,
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_ms": round(sorted_lats[int(n * 0.50)], 4),
        "p95_ms": round(sorted_lats[min(int(n * 0.95), n - 1)], 4),
    }


def bench_refresh_latency(
    files: int = _FILES,
    tasks_per_file: int = _TASKS_PER_FILE,
    iterations: int = _ITERATIONS,
    use_cache: bool = True,
) -> dict[str, object]:
    """Benchmark ``TaskSession.refresh`` on a generated vault.

    Returns
    -------
    dict with keys: operation, iterations, records, total_seconds,
    ops_per_second, avg_latency_ms, p50_ms, p95_ms.
    """
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        query_path = build_vault(root, files, tasks_per_file)
        config = SessionConfig(vault_root=str(root), query_source=str(query_path), use_cache=use_cache)
        with TaskSession(config) as session:
            for _ in range(min(_WARMUP, iterations)):
                session.refresh()

            latencies_ms: list[float] = []
            for _ in range(iterations):
                t0 = time.perf_counter()
                session.refresh()
                latencies_ms.append((time.perf_counter() - t0) * 1000)
            records = len(session.records)

    label = "warm" if use_cache else "cold"
    result = _summarize(f"refresh_{label}_cache", latencies_ms, records)
    print(
        f"[bench_refresh] {result['operation']}: "
        f"p50={result['p50_ms']:.4f}ms  p95={result['p95_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms  records={records}"
    )
    return result


if __name__ == "__main__":
    results = [bench_refresh_latency(use_cache=False), bench_refresh_latency(use_cache=True)]
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "refresh_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(results, fh, indent=2)
    print(f"Results saved to {output_path}")
