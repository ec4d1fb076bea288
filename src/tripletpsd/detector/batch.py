from __future__ import annotations
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import List, NamedTuple, Sequence, Tuple

import numpy as np

try:
    from tqdm import tqdm  # optional, for progress bars
except Exception:
    tqdm = None  # noqa

from tripletpsd.detector.histogram import TripletHistogram
from tripletpsd.detector.triplet import TraceResult, TraceStats, TripletDetector
from tripletpsd.physics.rays import Ray

class BatchResult(NamedTuple):
    rays: List[Ray]
    results: List[TraceResult]
    stats: TraceStats

# ----------------- worker & reducer -----------------

def _trace_chunk(
    detector: TripletDetector,
    rays: Sequence[Ray],
    seed: np.random.SeedSequence | None,
) -> Tuple[TripletHistogram, TraceStats, List[Ray], List[TraceResult]]:
    """Worker: traces into a private histogram and returns it with the updated rays."""
    hist = TripletHistogram(detector.histogram.no)
    stats = TraceStats()
    rng = np.random.default_rng(seed) if seed is not None else detector.rng
    results = [detector.trace(ray, rng=rng, histogram=hist, stats=stats) for ray in rays]
    return hist, stats, list(rays), results

def _auto_chunk_size(n_rays: int, workers: int) -> int:
    return max(2000, min(50000, n_rays // max(1, 4 * workers)))

# ----------------- public API -----------------

def trace_rays(
    detector: TripletDetector,
    rays: Sequence[Ray],
    workers: int | str = 0,
    chunk_rays: int | str = "auto",
    seed: int | None = None,
    progress: bool = False,
) -> BatchResult:
    """
    Trace many independent rays and accumulate into detector.histogram.

    workers == 0 runs in-process with detector.rng. Otherwise rays are split
    into chunks, each traced in a worker process with its own generator
    spawned from `seed`; the chunk histograms are summed afterwards.

    In-process tracing updates the given Ray objects in place. Pool workers
    trace pickled copies, so the caller's rays stay untouched there; read
    the traced rays from BatchResult.rays in both modes.
    """
    rays = list(rays)
    N = len(rays)
    if N == 0:
        return BatchResult([], [], TraceStats())

    if workers == "auto":
        workers = max(1, os.cpu_count() or 1)
    elif isinstance(workers, int):
        workers = max(0, workers)
    else:
        raise ValueError("workers must be int or 'auto'")

    # Single-process path (also good for debugging)
    if workers == 0:
        stats = TraceStats()
        it = tqdm(rays, desc="trace", unit="ray") if progress and tqdm else rays
        results = [detector.trace(ray, stats=stats) for ray in it]
        detector.stats.merge(stats)
        return BatchResult(rays, results, stats)

    if chunk_rays == "auto":
        chunk_rays = _auto_chunk_size(N, workers)
    else:
        chunk_rays = int(chunk_rays)

    chunks: List[Sequence[Ray]] = [rays[i:i + chunk_rays] for i in range(0, N, chunk_rays)]
    seeds = np.random.SeedSequence(seed).spawn(len(chunks))

    pbar = tqdm(total=len(chunks), desc=f"trace x{workers}", unit="chunk") if (progress and tqdm) else None

    out_rays: List[List[Ray]] = [[] for _ in chunks]
    out_results: List[List[TraceResult]] = [[] for _ in chunks]
    stats = TraceStats()

    with ProcessPoolExecutor(max_workers=workers) as ex:
        futs = {ex.submit(_trace_chunk, detector, ch, sd): k for k, (ch, sd) in enumerate(zip(chunks, seeds))}
        for fut in as_completed(futs):
            k = futs[fut]
            hist, chunk_stats, chunk_rays_out, chunk_results = fut.result()
            detector.histogram.merge(hist)
            stats.merge(chunk_stats)
            out_rays[k] = chunk_rays_out
            out_results[k] = chunk_results
            if pbar:
                pbar.update(1)
    if pbar:
        pbar.close()

    detector.stats.merge(stats)
    return BatchResult(
        [r for ch in out_rays for r in ch],
        [r for ch in out_results for r in ch],
        stats,
    )
