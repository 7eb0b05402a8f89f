"""Image export utilities for rasterised previews.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from dgal.preview.export import save_png
    >>> from dgal.preview.raster import rasterize_pair
    >>> save_png(rasterize_pair(a, b), "overlap.png")
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def image_to_uint8(image: npt.NDArray[np.float32], *, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
    """Convert a float image in [0, 1] to uint8.

    Args:
        image: Image array of shape (H, W, 3).
        gamma: Gamma encoding applied before quantisation (1.0 keeps the
            values as they are).

    Returns:
        8-bit image array of shape (H, W, 3).

    Raises:
        ValueError: If the image is not an (H, W, 3) array.
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")

    # Clamp before gamma to avoid NaN from negative values
    result = np.clip(image, 0.0, 1.0)
    if gamma != 1.0:
        result = np.power(result, 1.0 / gamma)

    return (result * 255 + 0.5).astype(np.uint8)


def save_png(image: npt.NDArray[np.float32], filepath: str, *, gamma: float = 1.0) -> None:
    """Save a float image as an 8-bit RGB PNG.

    Args:
        image: Image array of shape (H, W, 3) in [0, 1].
        filepath: Output file path (should end in .png).
        gamma: Gamma encoding applied before quantisation.
    """
    pil_image = PILImage.fromarray(image_to_uint8(image, gamma=gamma))
    pil_image.save(filepath)
