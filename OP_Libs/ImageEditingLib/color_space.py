"""
Vectorised RGB <-> HSL conversion.

Both directions operate on whole channel planes. RGB planes are floats in
0-255, HSL planes are floats in 0-1. The conversion is the usual max/min
channel formulation; when several channels share the maximum, red wins
over green and green over blue.
"""

from typing import Tuple

import numpy as np


def rgb_to_hsl(r: np.ndarray, g: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    r = np.asarray(r, dtype=np.float64) / 255.0
    g = np.asarray(g, dtype=np.float64) / 255.0
    b = np.asarray(b, dtype=np.float64) / 255.0

    maximum = np.maximum(np.maximum(r, g), b)
    minimum = np.minimum(np.minimum(r, g), b)
    diff = maximum - minimum
    lightness = (maximum + minimum) / 2.0

    chromatic = diff != 0
    safe_diff = np.where(chromatic, diff, 1.0)

    denom = np.where(lightness > 0.5, 2.0 - maximum - minimum, maximum + minimum)
    denom = np.where(chromatic, denom, 1.0)
    saturation = np.where(chromatic, diff / denom, 0.0)

    hue_r = ((g - b) / safe_diff + np.where(g < b, 6.0, 0.0)) / 6.0
    hue_g = ((b - r) / safe_diff + 2.0) / 6.0
    hue_b = ((r - g) / safe_diff + 4.0) / 6.0
    hue = np.where(maximum == r, hue_r, np.where(maximum == g, hue_g, hue_b))
    hue = np.where(chromatic, hue, 0.0)

    return hue, saturation, lightness


def _hue_to_rgb(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    t = np.where(t < 0, t + 1.0, t)
    t = np.where(t > 1, t - 1.0, t)
    return np.select(
        [t < 1.0 / 6.0, t < 0.5, t < 2.0 / 3.0],
        [p + (q - p) * 6.0 * t, q, p + (q - p) * (2.0 / 3.0 - t) * 6.0],
        default=p,
    )


def hsl_to_rgb(h: np.ndarray, s: np.ndarray, l: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    h = np.asarray(h, dtype=np.float64)
    s = np.asarray(s, dtype=np.float64)
    l = np.asarray(l, dtype=np.float64)

    q = np.where(l < 0.5, l * (1.0 + s), l + s - l * s)
    p = 2.0 * l - q

    achromatic = s == 0
    r = np.where(achromatic, l, _hue_to_rgb(p, q, h + 1.0 / 3.0))
    g = np.where(achromatic, l, _hue_to_rgb(p, q, h))
    b = np.where(achromatic, l, _hue_to_rgb(p, q, h - 1.0 / 3.0))

    return r * 255.0, g * 255.0, b * 255.0
