from __future__ import annotations

import argparse
import json
import statistics
import time
import tracemalloc
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from fastio import FastFileSystem, MemoryScanAPI, NativeScanAPI, default_api

STRATEGIES = ("sequential", "fanout", "pool")


@dataclass
class CaseResult:
    strategy: str
    case: str
    files: int
    seconds_mean: float
    seconds_min: float
    seconds_max: float
    peak_kib_mean: float


def _run_with_memory(fn: Callable[[], int]) -> tuple[float, float, int]:
    tracemalloc.start()
    start = time.perf_counter()
    count = fn()
    elapsed = time.perf_counter() - start
    _, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    return elapsed, peak / 1024.0, count


def build_wide_tree(api: MemoryScanAPI, root: str, dirs: int, files_per_dir: int) -> int:
    for d in range(dirs):
        for f in range(files_per_dir):
            api.write_file(f"{root}\\d{d:04d}\\f{f:04d}.bin", b"x")
    return dirs * files_per_dir


def build_deep_tree(api: MemoryScanAPI, root: str, levels: int, fanout: int) -> int:
    count = 0
    frontier = [root]
    api.mkdir(root)
    for level in range(levels):
        next_frontier = []
        for parent in frontier:
            api.write_file(f"{parent}\\file_{level}.bin", b"y")
            count += 1
            for i in range(fanout):
                child = f"{parent}\\l{level}_{i}"
                api.mkdir(child)
                next_frontier.append(child)
        frontier = next_frontier
    return count


def bench_enumerate(
    api: NativeScanAPI, root: str, strategy: str, workers: int
) -> Callable[[], int]:
    fs = FastFileSystem(api=api, strategy=strategy, workers=workers)

    def run() -> int:
        return sum(1 for _ in fs.enumerate_files(root, recursive=True))

    return run


def run_case(
    strategy: str,
    case: str,
    fn: Callable[[], int],
    repeat: int,
    warmup: int,
) -> CaseResult:
    for _ in range(warmup):
        fn()

    elapsed_list: list[float] = []
    peak_list: list[float] = []
    count = 0
    for _ in range(repeat):
        elapsed, peak_kib, count = _run_with_memory(fn)
        elapsed_list.append(elapsed)
        peak_list.append(peak_kib)

    return CaseResult(
        strategy=strategy,
        case=case,
        files=count,
        seconds_mean=statistics.mean(elapsed_list),
        seconds_min=min(elapsed_list),
        seconds_max=max(elapsed_list),
        peak_kib_mean=statistics.mean(peak_list),
    )


def _fmt_ms(seconds: float) -> str:
    return f"{seconds * 1000.0:.2f}"


def print_table(results: list[CaseResult]) -> None:
    print("| Case | Strategy | files | mean(ms) | min(ms) | max(ms) | peak KiB (mean) |")
    print("|---|---:|---:|---:|---:|---:|---:|")
    for r in results:
        print(
            f"| {r.case} | {r.strategy} | {r.files} | {_fmt_ms(r.seconds_mean)} |"
            f" {_fmt_ms(r.seconds_min)} | {_fmt_ms(r.seconds_max)} | {r.peak_kib_mean:.1f} |"
        )


def _results_to_dict(results: list[CaseResult]) -> list[dict[str, float | int | str]]:
    return [
        {
            "strategy": r.strategy,
            "case": r.case,
            "files": r.files,
            "seconds_mean": r.seconds_mean,
            "seconds_min": r.seconds_min,
            "seconds_max": r.seconds_max,
            "peak_kib_mean": r.peak_kib_mean,
        }
        for r in results
    ]


def _resolve_output_path(raw: str) -> Path:
    if raw != "auto":
        return Path(raw)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_dir = Path("benchmarks") / "results"
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir / f"strategies_{ts}.json"


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Compare sequential, fan-out and worker-pool enumeration"
    )
    parser.add_argument("--repeat", type=int, default=5)
    parser.add_argument("--warmup", type=int, default=1)
    parser.add_argument("--workers", type=int, default=10)
    parser.add_argument("--wide-dirs", type=int, default=500)
    parser.add_argument("--wide-files", type=int, default=20)
    parser.add_argument("--deep-levels", type=int, default=6)
    parser.add_argument("--deep-fanout", type=int, default=4)
    parser.add_argument(
        "--path", default="", help="Also scan a real directory (Windows only)"
    )
    parser.add_argument("--json", action="store_true")
    parser.add_argument("--save-json", default="", help="Save json report path (or 'auto')")
    args = parser.parse_args()

    wide = MemoryScanAPI()
    build_wide_tree(wide, "C:\\wide", args.wide_dirs, args.wide_files)
    deep = MemoryScanAPI()
    build_deep_tree(deep, "C:\\deep", args.deep_levels, args.deep_fanout)

    cases: list[tuple[str, NativeScanAPI, str]] = [
        ("wide_tree", wide, "C:\\wide"),
        ("deep_tree", deep, "C:\\deep"),
    ]
    if args.path:
        cases.append(("native", default_api(), args.path))

    results: list[CaseResult] = []
    for case, api, root in cases:
        for strategy in STRATEGIES:
            results.append(
                run_case(
                    strategy,
                    case,
                    bench_enumerate(api, root, strategy, args.workers),
                    args.repeat,
                    args.warmup,
                )
            )

    if args.json:
        print(json.dumps(_results_to_dict(results), indent=2))
        return

    print_table(results)

    if args.save_json:
        json_path = _resolve_output_path(args.save_json)
        json_path.parent.mkdir(parents=True, exist_ok=True)
        json_path.write_text(json.dumps(_results_to_dict(results), indent=2), encoding="utf-8")
        print(f"Saved JSON report: {json_path}")


if __name__ == "__main__":
    main()
