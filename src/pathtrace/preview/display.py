"""Matplotlib-based preview display for rendered images.

This module provides gamma encoding for linear renders and a function for
showing a finished render in a Matplotlib window.

Example:
    >>> from pathtrace.preview.display import show_preview
    >>> from pathtrace.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(scene, camera_config)
    >>> renderer.render()
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from pathtrace.core.renderer import Renderer


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.0,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction for display.

    Args:
        image: Linear image array of shape (H, W, 3) in [0, 1] range.
        gamma: Gamma value. 2.0 takes the square root of each component.

    Returns:
        Gamma corrected image.
    """
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)

    # Apply gamma encoding: out = in^(1/gamma)
    result = np.power(image, 1.0 / gamma)

    return result.astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    gamma: float = 2.0,
) -> npt.NDArray[np.float32]:
    """Gamma encode a linear image and clamp it to [0, 1]."""
    result = apply_gamma(image.copy(), gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


def show_preview(
    renderer: Renderer,
    *,
    gamma: float = 2.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Args:
        renderer: The Renderer holding the image to display.
        gamma: Gamma correction value.
        title: Custom title (default shows resolution and sample count).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(renderer.get_image_numpy(), gamma=gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = (
            f"{renderer.width}x{renderer.height} - "
            f"{renderer.config.samples_per_pixel} SPP"
        )
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
