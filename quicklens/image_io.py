"""Loading lens/source images and saving rendered frames."""

from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from quicklens.errors import ImageLoadError


def load_convergence_map(path: str) -> np.ndarray:
    """Load a convergence map.

    ``.npy`` files are read as floating-point convergence in physical units
    (NaN becomes 0). Any other image is read as 8-bit grayscale.
    """
    path = Path(path)
    if path.suffix.lower() == ".npy":
        try:
            kappa = np.load(path, allow_pickle=False)
        except (OSError, ValueError) as exc:
            raise ImageLoadError(f"Error opening convergence file {path}: {exc}") from exc
        if kappa.ndim != 2 or kappa.size == 0:
            raise ImageLoadError(f"Convergence file {path} must hold a non-empty 2D array, got {kappa.shape}")
        return np.nan_to_num(kappa.astype(np.float64), nan=0.0)

    try:
        with Image.open(path) as img:
            return np.array(img.convert("L"), dtype=np.uint8)
    except (OSError, UnidentifiedImageError) as exc:
        raise ImageLoadError(f"Error opening image file {path}: {exc}") from exc


def load_source_image(path: str) -> np.ndarray:
    """Load a source image as an (h, w, 3) uint8 RGB array."""
    try:
        with Image.open(path) as img:
            return np.array(img.convert("RGB"), dtype=np.uint8)
    except (OSError, UnidentifiedImageError) as exc:
        raise ImageLoadError(f"Error opening image file {path}: {exc}") from exc


def save_image(path: str, rgb: np.ndarray) -> Path:
    """Save an (h, w, 3) uint8 RGB buffer, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.ascontiguousarray(rgb, dtype=np.uint8)).save(path)
    return path
