"""
Graph definition loading, environment overlays, and placeholder resolution.
"""

from wavedag.config.loader import Config, load_config

__all__ = [
    "load_config",
    "Config",
]
