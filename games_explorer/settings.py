"""
Configuration settings for the explorer.

Centralized configuration read from the environment with defaults.
"""

import os

# Data source (local path or http(s) URL)
DATA_SOURCE = os.getenv("GAMES_DATA_SOURCE", "https://monkeybud.github.io/data/games.tsv")
DATA_SEPARATOR = os.getenv("GAMES_DATA_SEPARATOR", "\t")

# Views
HISTOGRAM_BINS = 20
SCATTER_START = "1997-01-01"
SCATTER_RADIUS = (2, 14)  # px, min/max marker radius

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8050"))
DEBUG = os.getenv("DASH_DEBUG", "").lower() in {"1", "true", "yes"}

# Logging
LOG_LEVEL = os.getenv("GAMES_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
