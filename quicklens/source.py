"""Source image placed on the screen and sampled by the ray tracer."""

import logging
import math

import numba
import numpy as np
from PIL import Image

from quicklens.errors import GridShapeError
from quicklens.fieldmath import relocate

logger = logging.getLogger(__name__)


@numba.njit(cache=True, nogil=True)
def contains_point(origin_x, origin_y, width, height, x, y):
    """Whether (x, y) falls strictly inside the area [origin, origin + size)."""
    # Floor, not truncation: cells left of or above a negative origin stay outside
    xi = math.floor(x)
    yi = math.floor(y)
    return origin_x < xi < origin_x + width and origin_y < yi < origin_y + height


@numba.njit(cache=True, nogil=True)
def _blend(channel, low1, up1, low2, up2, c00, c01, c10, c11):
    val = (
        channel[low2, low1] * c00
        + channel[low2, up1] * c01
        + channel[up2, low1] * c10
        + channel[up2, up1] * c11
    )
    rounded = int(val + 0.5)
    if rounded > 255:
        return 255
    if rounded < 0:
        return 0
    return rounded


@numba.njit(cache=True, nogil=True)
def interpolate_pixel(channels, origin_x, origin_y, beta1, beta2):
    """
    Bilinear RGB sample of the source channels at screen position (beta1, beta2).

    Args:
        channels: (3, height, width) uint8 array of R, G, B grids
        origin_x, origin_y: Screen position of the top-left source pixel
        beta1, beta2: Sample position in screen coordinates

    Returns:
        (r, g, b) tuple; black if the position lies outside the source.
    """
    height = channels.shape[1]
    width = channels.shape[2]
    if not contains_point(origin_x, origin_y, width, height, beta1, beta2):
        return 0, 0, 0

    rel1 = beta1 - origin_x
    rel2 = beta2 - origin_y
    fl1 = math.floor(rel1)
    fl2 = math.floor(rel2)
    low1 = relocate(fl1, width)
    low2 = relocate(fl2, height)
    up1 = relocate(fl1 + 1.0, width)
    up2 = relocate(fl2 + 1.0, height)

    x = rel1 - fl1
    y = rel2 - fl2
    xy = x * y
    c00 = 1.0 - x - y + xy
    c01 = x - xy
    c10 = y - xy
    c11 = xy

    r = _blend(channels[0], low1, up1, low2, up2, c00, c01, c10, c11)
    g = _blend(channels[1], low1, up1, low2, up2, c00, c01, c10, c11)
    b = _blend(channels[2], low1, up1, low2, up2, c00, c01, c10, c11)
    return r, g, b


def split_channels(image: np.ndarray) -> np.ndarray:
    """(h, w, 3) RGB image -> contiguous (3, h, w) stack of single-channel grids."""
    return np.ascontiguousarray(np.moveaxis(image, 2, 0))


class Source:
    """Source image with a movable, resizable sampling window on the screen.

    Attributes:
        image: Original RGB image, (h, w, 3) uint8, read-only
        channels: Current (possibly rescaled) working copy as (3, h, w) uint8
        width, height: Current size of the working copy
        position: Screen position of the source center
        origin: Screen position of the top-left pixel of the working copy
    """

    def __init__(self, image: np.ndarray, center_x: int, center_y: int):
        image = np.asarray(image)
        if image.ndim != 3 or image.shape[2] != 3 or image.shape[0] == 0 or image.shape[1] == 0:
            raise GridShapeError(f"source must be a non-empty (h, w, 3) RGB grid, got shape {image.shape}")

        self.image = np.ascontiguousarray(image, dtype=np.uint8).copy()
        self.image.flags.writeable = False
        self.channels = split_channels(self.image)
        self.height, self.width = self.image.shape[:2]
        self.position = (0, 0)
        self.origin = (0, 0)
        self.move(center_x, center_y)

    def __repr__(self) -> str:
        return (
            f"Source(width={self.width}, height={self.height}, "
            f"position={self.position}, origin={self.origin})"
        )

    @property
    def original_width(self) -> int:
        return self.image.shape[1]

    @property
    def original_height(self) -> int:
        return self.image.shape[0]

    @property
    def extent(self) -> tuple[int, int]:
        return self.width, self.height

    def move(self, x: int, y: int) -> None:
        """Center the source on screen pixel (x, y), keeping its current size."""
        self.position = (int(x), int(y))
        self.origin = (self.position[0] - self.width // 2, self.position[1] - self.height // 2)

    def resize_area(self, factor: float) -> None:
        """Rescale the working copy to factor times the original size, keeping the center.

        Sizes that would round to zero leave the current working copy untouched.
        """
        center_x = self.origin[0] + self.width // 2
        center_y = self.origin[1] + self.height // 2
        new_w = int(self.original_width * factor)
        new_h = int(self.original_height * factor)

        if new_w > 0 and new_h > 0:
            rescaled = Image.fromarray(self.image).resize(
                (new_w, new_h), resample=Image.Resampling.BILINEAR
            )
            self.channels = split_channels(np.asarray(rescaled, dtype=np.uint8))
            self.width, self.height = new_w, new_h
        else:
            logger.debug("Skipping degenerate source resize (factor=%.3f)", factor)

        self.move(center_x, center_y)

    def contains(self, x: float, y: float) -> bool:
        """Whether (x, y) lies strictly inside the area covered by source pixels."""
        return bool(contains_point(self.origin[0], self.origin[1], self.width, self.height, x, y))

    def get_interpolated_pixel(self, beta1: float, beta2: float) -> tuple[int, int, int]:
        """Bilinearly interpolated RGB value at screen position (beta1, beta2)."""
        return interpolate_pixel(self.channels, self.origin[0], self.origin[1], float(beta1), float(beta2))
