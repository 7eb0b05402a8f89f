"""Matplotlib preview of rasterised polygon pairs.

Example:
    >>> from dgal.preview.display import show_image
    >>> from dgal.preview.raster import rasterize_pair
    >>> show_image(rasterize_pair(a, b), title="IoU 0.42")
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt


def show_image(
    image: npt.NDArray[np.float32],
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (6, 6),
    block: bool = True,
) -> None:
    """Display a float RGB image in a Matplotlib figure.

    Args:
        image: Image array of shape (H, W, 3) in [0, 1].
        title: Figure title.
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(np.clip(image, 0.0, 1.0))
    ax.axis("off")
    if title is not None:
        ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
