from __future__ import annotations

import typer
from typing import Optional

from tripletpsd.vis.hdf import save_histogram_png

app = typer.Typer(help="Triplet PSD visualization tools")

@app.command("h5-to-png")
def h5_to_png(
    h5_path: str = typer.Argument(..., help="Path to HDF5 file containing /histogram"),
    dataset: str = typer.Option("/histogram/p", "--dataset", "-d", help="Dataset path (N, p or p2)"),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Output PNG path (defaults to file.png)"),
):
    """Render the stored triplet histogram to a PNG."""
    out_png = save_histogram_png(h5_path, out_png=out, dataset=dataset)
    typer.echo(f"Wrote {out_png}")

if __name__ == "__main__":
    app()
