"""Core engine package for the PBF counting-sort grid simulator."""

from .world_container import WorldContainer
from .configuration import load_scene_config, SceneConfig

__all__ = [
    "WorldContainer",
    "SceneConfig",
    "load_scene_config",
]
