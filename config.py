"""Central configuration for marching-squares contour extraction.

All tunable parameters are defined here with descriptive names.
The command-line flags of `msq` default to these values.
"""

# =============================================================================
# GRID SAMPLING
# =============================================================================

# Distance in pixels between two sample points (same for both axes).
# Contour templates must be exactly GRID_STEP x GRID_STEP pixels.
GRID_STEP = 8

# Luminance threshold (0-255): sample points with (r + g + b) // 3 <= SIGMA
# are "inside" (grid value 1), brighter points are "outside" (grid value 0)
SIGMA = 200

# =============================================================================
# RESCALING
# =============================================================================

# Images larger than this in either dimension are bicubic-resampled to
# exactly RESCALE_X x RESCALE_Y before sampling
RESCALE_X = 2048
RESCALE_Y = 2048

# =============================================================================
# CONTOUR TEMPLATES
# =============================================================================

# Number of marching-squares configurations (4 corners -> 4-bit code)
CONTOUR_CONFIG_COUNT = 16

# Directory holding one template image per configuration code
CONTOUR_DIR = "contours"

# File name of the template for a configuration code
CONTOUR_FILE_TEMPLATE = "{code}.ppm"

# Colors used by make_contours.py when rendering templates (RGB)
CONTOUR_BACKGROUND = (255, 255, 255)
CONTOUR_LINE_COLOR = (0, 0, 0)

# =============================================================================
# EXIT CODES
# =============================================================================

EXIT_OK = 0

# Bad arguments, unreadable input, broken templates, failed allocation
EXIT_USAGE = 1

# A worker thread could not be started or failed mid-run
EXIT_THREAD_FAILURE = 3
