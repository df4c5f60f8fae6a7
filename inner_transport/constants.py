"""
Numerical constants and default convergence criteria for inner iterations.
"""
import numpy as np

# ---------------------------------------------------------------------------
# Angular normalisation
# ---------------------------------------------------------------------------
FOUR_PI = 4.0 * np.pi              # total solid angle (2D/3D quadratures)
SLAB_NORM = 2.0                    # total weight of a 1D (mu in [-1, 1]) set

# ---------------------------------------------------------------------------
# Inner iteration defaults (input keys inner_max_iters / inner_tolerance)
# ---------------------------------------------------------------------------
DEFAULT_INNER_MAX_ITERS = 100
DEFAULT_INNER_TOLERANCE = 1.0e-5

# Livolant: number of plain iterates between extrapolations
LIVOLANT_FREQUENCY = 3

# GMRES restart length
KRYLOV_RESTART = 20

# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------
SMALL = 1.0e-14                    # near-zero magnitude / denominator
ERROR_WINDOW = 3                   # error samples kept for rate estimates

# Spatial dimensions a sweeper may declare
SUPPORTED_DIMENSIONS = (1, 2)
