from __future__ import annotations
import numpy as np
from ..config.schemas import SourceCfg
from ..physics.rays import Ray, RaySchema

# v [m/s] = K / lambda [Angstrom]
K_V_LAMBDA = 3956.034

def speed_from_lambda(lambda_AA):
    return K_V_LAMBDA / np.asarray(lambda_AA, dtype=np.float64)

def synth_rays(
    n_rays: int,
    cfg: SourceCfg,
    schema: RaySchema,
    rng: np.random.Generator | None = None,
) -> list[Ray]:
    """
    Generate rays from a point or rectangular source aimed at a
    focus_width x focus_height window around cfg.target:
      - start point: cfg.position (+ uniform jitter over width x height for "rect")
      - direction: towards a uniform point in the focus window (xy plane at target)
      - speed: from a uniform wavelength band [lambda_min, lambda_max]
    """
    rng = rng or np.random.default_rng()
    src = np.asarray(cfg.position, dtype=np.float64)
    tgt = np.asarray(cfg.target, dtype=np.float64)

    start = np.tile(src, (n_rays, 1))
    if cfg.shape == "rect":
        start[:, 0] += rng.uniform(-0.5, 0.5, n_rays) * cfg.width
        start[:, 1] += rng.uniform(-0.5, 0.5, n_rays) * cfg.height

    aim = np.tile(tgt, (n_rays, 1))
    aim[:, 0] += rng.uniform(-0.5, 0.5, n_rays) * cfg.focus_width
    aim[:, 1] += rng.uniform(-0.5, 0.5, n_rays) * cfg.focus_height

    d = aim - start
    norms = np.linalg.norm(d, axis=1, keepdims=True)
    if np.any(norms == 0):
        raise ValueError("Source position coincides with the focus window")
    d /= norms
    speed = speed_from_lambda(rng.uniform(cfg.lambda_min, cfg.lambda_max, n_rays))
    vel = d * speed[:, None]

    return [schema.new_ray(start[i], vel[i], p=cfg.weight) for i in range(n_rays)]
