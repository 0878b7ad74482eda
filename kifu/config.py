"""
Engine configuration.

Values are read from the environment once, at import time.
"""

import os

# Worker threads for territory estimation and score computation
KIFU_COMPUTE_WORKERS = max(1, int(os.getenv("KIFU_COMPUTE_WORKERS", "1")))

# Manhattan radius used by the territory estimator to weigh nearby stones
KIFU_ESTIMATE_RADIUS = int(os.getenv("KIFU_ESTIMATE_RADIUS", "3"))

# A group is guessed dead when nearby opposing stones outnumber
# this ratio times its own nearby strength
KIFU_DEAD_STONE_RATIO = float(os.getenv("KIFU_DEAD_STONE_RATIO", "2.0"))

# Web root of the game server, used to build game links
KIFU_SERVER_ROOT = os.getenv("KIFU_SERVER_ROOT", "https://online-go.com").rstrip("/")
