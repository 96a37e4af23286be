"""Post-processing effects for exported results."""

from __future__ import annotations

import math

from PIL import Image, ImageChops


def add_film_grain(image: Image.Image, intensity: float = 0.04) -> Image.Image:
    """Overlay monochrome noise on the RGB channels; alpha is left untouched.

    ``intensity`` is the width of the noise band as a fraction of full scale.
    """
    if intensity < 0:
        raise ValueError("Grain intensity must be non-negative.")
    if intensity == 0:
        return image.copy()
    # Gaussian sigma matching the spread of a uniform band of this width.
    sigma = 255.0 * intensity / math.sqrt(12.0)
    noise = Image.effect_noise(image.size, sigma).convert("RGB")
    alpha = image.getchannel("A") if image.mode in ("RGBA", "LA") else None
    grained = ImageChops.add(image.convert("RGB"), noise, scale=1.0, offset=-128)
    if alpha is not None:
        grained.putalpha(alpha)
    return grained
