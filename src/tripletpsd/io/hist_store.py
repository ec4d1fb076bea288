from __future__ import annotations
from typing import Any, Dict, Optional, Tuple
import h5py
import numpy as np
from datetime import datetime, timezone
from pathlib import Path
from tripletpsd.config.load import json_dumps
from tripletpsd.detector.histogram import TripletHistogram
from tripletpsd.detector.tubes import TripletAssembly

FORMAT_VERSION = "1.0"
SOFTWARE = "tripletpsd 0.1.0"


def write_histogram(
    path: str | Path,
    hist: TripletHistogram,
    *,
    title: str = "Triplet PSD",
    xlabel: str = "Channel",
    ylabel: str = "Intensity",
    xvar: str = "ch",
    xlimits: Optional[Tuple[float, float]] = None,
    assembly: Optional[TripletAssembly] = None,
    config_text: str = "",
    detector_name: str = "triplet",
) -> Path:
    """
    Write a 1D histogram (N, p, p2 over `no` bins) to HDF5.

    Layout:
      /            attrs: format_version, created_utc, software, config_text
      /histogram   datasets N, p, p2; attrs title, xlabel, ylabel, xvar, xlimits, bins
      /meta        detector summary (only when `assembly` is given)
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    if xlimits is None:
        xlimits = (0.0, float(hist.no))

    with h5py.File(out, "w") as f:
        f.attrs["format_version"] = FORMAT_VERSION
        f.attrs["created_utc"] = datetime.now(timezone.utc).isoformat()
        f.attrs["software"] = SOFTWARE
        f.attrs["config_text"] = config_text

        grp = f.create_group("histogram")
        grp.attrs["title"] = title
        grp.attrs["xlabel"] = xlabel
        grp.attrs["ylabel"] = ylabel
        grp.attrs["xvar"] = xvar
        grp.attrs["xlimits"] = np.asarray(xlimits, dtype=np.float64)
        grp.attrs["bins"] = hist.no
        grp.attrs["component"] = detector_name
        grp.attrs["dropped"] = hist.dropped
        grp.create_dataset("N", data=hist.N.astype(np.uint64), compression="gzip")
        grp.create_dataset("p", data=hist.p.astype(np.float64), compression="gzip")
        grp.create_dataset("p2", data=hist.p2.astype(np.float64), compression="gzip")

        if assembly is not None:
            meta = f.create_group("meta")
            meta.attrs["total_resistance"] = assembly.total_resistance
            meta.attrs["tube.length"] = np.array([t.length for t in assembly.tubes])
            meta.attrs["tube.radius"] = np.array([t.radius for t in assembly.tubes])
            meta.attrs["tube.resistance"] = np.array([t.resistance for t in assembly.tubes])
            meta.attrs["tube.offset"] = np.stack([t.frame.offset for t in assembly.tubes])
            meta.attrs["chain"] = json_dumps(
                {"lead_a": assembly.lead_a, "R01": assembly.R01, "R12": assembly.R12, "lead_b": assembly.lead_b}
            )
    return out


def read_histogram(path: str | Path) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
    """Return ({"N", "p", "p2"}, attrs of /histogram)."""
    with h5py.File(path, "r") as f:
        if "histogram" not in f:
            raise KeyError(f"/histogram not found in {path}")
        grp = f["histogram"]
        arrays = {k: grp[k][...] for k in ("N", "p", "p2")}
        attrs = {k: grp.attrs[k] for k in grp.attrs}
    return arrays, attrs
