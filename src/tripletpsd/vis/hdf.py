import h5py
import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path

def save_histogram_png(h5_path: str, out_png: str | None = None, dataset: str = "/histogram/p"):
    """Plot a stored triplet histogram with one colour per tube band."""
    h5_path = str(h5_path)
    with h5py.File(h5_path, "r") as f:
        if dataset not in f:
            raise KeyError(f"{dataset} not found in {h5_path}")
        y = np.array(f[dataset], dtype=np.float64)
        grp = f[dataset].parent
        title = str(grp.attrs.get("title", Path(h5_path).name))
        xlabel = str(grp.attrs.get("xlabel", "Channel"))
        ylabel = str(grp.attrs.get("ylabel", "Intensity"))

    if out_png is None:
        out_png = str(Path(h5_path).with_suffix(".png"))

    band = len(y) // 3
    x = np.arange(len(y))
    plt.figure()
    for tube in range(3):
        s = slice(tube * band, (tube + 1) * band)
        plt.step(x[s], y[s], where="post", label=f"tube {tube}")
    plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.legend()
    plt.title(title + " : " + dataset)
    plt.tight_layout()
    plt.savefig(out_png, dpi=150)
    plt.close()
    return out_png
