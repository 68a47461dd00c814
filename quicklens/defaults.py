"""Central place for quicklens default settings."""

# Convergence input scaling
BYTE_KAPPA_MAX: float = 2.0  # Grayscale 255 maps to kappa = 2 (arbitrary choice)
KAPPA_LOG_DISPLAY_GAIN: float = 70.0
KAPPA_LOG_DISPLAY_OFFSET: float = 2.5  # Displays kappa in [10^-2.5, 255/70]

# Green's function kernel
GREEN_ORIGIN_VALUE: float = -1.4658711977588554  # log(0.01) / pi, lower cut for the log

# Critical curves
CRITICAL_CURVE_SMOOTH_SIGMA: float = 4.0
CURVE_INTENSITY_MAX: int = 255

# Lens weight
DEFAULT_WEIGHT: float = 1.0
WEIGHT_SLIDER_DIVISOR: float = 20.0
DEFAULT_WEIGHT_SLIDER: int = 100
MAX_WEIGHT_SLIDER: int = 200

# Source size
SOURCE_SIZE_DIVISOR: float = 100.0
DEFAULT_SOURCE_SIZE_SLIDER: int = 100
MAX_SOURCE_SIZE_SLIDER: int = 400

# Overlays
DEFAULT_OVERLAY_MODE: int = 1
MAX_OVERLAY_MODE: int = 4
CAUSTIC_COLOR: tuple[int, int, int] = (255, 0, 0)  # RGB
CRITICAL_CURVE_COLOR: tuple[int, int, int] = (255, 255, 255)
SOURCE_MARKER_RADIUS: int = 7
SOURCE_MARKER_LEVEL: int = 210

# Status line
STATUS_MESSAGE_SECONDS: float = 1.0

# Threading
DEFAULT_NUM_THREADS: int | None = None  # None = auto-detect from CPU count
