from __future__ import annotations

from pathlib import Path
from typing import Optional
import typer

import numpy as np

from tripletpsd.config.load import load_config, snapshot_config_toml
from tripletpsd.config.schemas import Config
from tripletpsd.detector.batch import BatchResult, trace_rays
from tripletpsd.detector.triplet import TripletDetector
from tripletpsd.io.hist_store import write_histogram
from tripletpsd.physics.rays import RaySchema
from tripletpsd.sim.synth import synth_rays
from tripletpsd.vis.hdf import save_histogram_png


def _ray_schema(cfg: Config) -> RaySchema:
    """
    Slots every synthetic ray carries: the declared [source].slots plus any
    output slot named in [output]. An output name missing from [source].slots
    is only added when slots is left empty, so a typo still fails at startup.
    """
    declared = list(cfg.source.slots)
    if not declared:
        declared = [n for n in (cfg.output.charge_left, cfg.output.charge_right, cfg.output.time) if n]
    return RaySchema.of(list(dict.fromkeys(declared)))


def simulate(cfg: Config, n_rays: Optional[int] = None) -> tuple[TripletDetector, BatchResult]:
    """
    Build the detector, trace synthetic rays through it and return both.

    No file is written here; see run_pipeline().
    """
    diag_level = cfg.run.diagnostics_level
    schema = _ray_schema(cfg)
    rng = np.random.default_rng(cfg.run.seed)

    detector = TripletDetector.from_cfg(cfg, schema=schema, rng=rng)
    if diag_level >= 1:
        tubes = detector.assembly.tubes
        print(f"[run] detector={detector.name} ordering={detector.resolver.ordering} "
              f"charge={detector.charge.name} no={detector.histogram.no}")
        print(f"[run] total_resistance={detector.total_resistance:.6g} Ohm "
              f"tubes(R)={[round(t.resistance, 6) for t in tubes]}")

    n = cfg.source.n_rays if n_rays is None else n_rays
    rays = synth_rays(n, cfg.source, schema, rng=rng)
    if diag_level >= 2 and rays:
        print(f"[trace] first ray r={rays[0].r} v={rays[0].v} p={rays[0].p}")

    batch = trace_rays(
        detector,
        rays,
        workers=cfg.run.workers,
        chunk_rays=cfg.run.chunk_rays,
        seed=cfg.run.seed,
        progress=cfg.run.progress,
    )

    if diag_level >= 1:
        st = batch.stats
        print(f"[trace] {st.hits}/{st.rays} rays hit the triplet, {st.misses} absorbed as misses")
        if st.reasons:
            print(f"[trace] reasons: {st.reasons}")
        h = detector.histogram
        print(f"[hist] counts={int(h.N.sum())} sum_p={float(h.p.sum()):.6g} dropped={h.dropped}")
    return detector, batch


def run_pipeline(
    cfg_path: str,
    *,
    workers: Optional[int] = None,
    nowrite: Optional[bool] = None,
    restore: Optional[bool] = None,
    n_rays: Optional[int] = None,
) -> Optional[Path]:
    """
    Orchestrate synthetic tracing and histogram output from a TOML config file.

    CLI flags override the corresponding TOML fields when not None.

    Returns
    -------
    Path to written HDF5 file, or None when writing is disabled.
    """
    cfg = load_config(cfg_path)

    # ---- apply CLI overrides on top of TOML ----
    if workers is not None:
        cfg.run.workers = workers
    if nowrite is not None:
        cfg.histogram.nowrite = nowrite
    if restore is not None:
        cfg.output.restore_neutron = restore

    diag_level = cfg.run.diagnostics_level
    if diag_level >= 1:
        print(f"[run] config = {cfg_path}")
        print(f"[run] rays={n_rays or cfg.source.n_rays} workers={cfg.run.workers} "
              f"restore={cfg.output.restore_neutron} nowrite={cfg.histogram.nowrite}")

    detector, _ = simulate(cfg, n_rays=n_rays)

    if cfg.histogram.nowrite:
        if diag_level >= 1:
            print("[hist] nowrite set, skipping output")
        return None

    out_path = write_histogram(
        cfg.histogram.filename,
        detector.histogram,
        title=cfg.histogram.title,
        xlabel="Channel (tube band)",
        ylabel="Intensity",
        xvar="ch",
        assembly=detector.assembly,
        config_text=snapshot_config_toml(cfg_path),
        detector_name=detector.name,
    )
    if diag_level >= 1:
        print(f"[hist] wrote {out_path}")

    # Optional PNG export
    if cfg.vis.export_png_on_write:
        try:
            out_png = save_histogram_png(str(out_path))
            if diag_level >= 1:
                print(f"[pipeline] Wrote PNG {out_png}")
        except Exception as e:
            if diag_level >= 1:
                print(f"[pipeline] PNG export failed: {e!r}")

    return out_path


# ---------------------------------------------------------------------------
# Unified CLI entry point
# ---------------------------------------------------------------------------

app = typer.Typer(help="Triplet PSD detector simulation (tripletpsd.pipelines.core)")


@app.command()
def main(
    cfg_path: str = typer.Argument(
        ...,
        help="Path to TOML config file",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-j",
        help="Override [run].workers (0 = single process)",
    ),
    nowrite: bool = typer.Option(
        False,
        "--nowrite",
        help="Override [histogram].nowrite = true (skip the HDF5 file)",
    ),
    restore: bool = typer.Option(
        False,
        "--restore",
        help="Override [output].restore_neutron = true (observe without perturbing rays)",
    ),
    n_rays: Optional[int] = typer.Option(
        None,
        "--rays",
        "-n",
        help="Override [source].n_rays",
    ),
):
    """
    Trace synthetic rays through one triplet detector and write its histogram.
    """
    out_path = run_pipeline(
        cfg_path,
        workers=workers,
        nowrite=nowrite if nowrite else None,
        restore=restore if restore else None,
        n_rays=n_rays,
    )
    typer.echo(str(out_path) if out_path is not None else "(no output written)")


if __name__ == "__main__":
    app()
