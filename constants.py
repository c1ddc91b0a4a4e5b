# constants.py

# World space axes
MIN_X = 0.0
MAX_X = 1000.0
MIN_Y = 0.0
MAX_Y = 1000.0

# Renderer space (normalized device coordinates)
NDC_MIN = -1.0
NDC_MAX = 1.0

# Wall bounce
BOUNCE_SPEED_SQ_THRESHOLD = 300.0
BOUNCE_ANGLE = 3.14 + 0.7

# Merging
MERGE_RADIUS_FRACTION = 10.0

# Quadtree
MAX_TREE_DEPTH = 64

# Simulation defaults
DEFAULT_TIME_STEP = 0.05
DEFAULT_THETA = 0.5
TIME_STEP_NUDGE = 0.05
