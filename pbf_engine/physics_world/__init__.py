"""Physics world package aggregating solver implementations."""

from .world import PhysicsWorld
from .state import WorldSnapshot

__all__ = ["PhysicsWorld", "WorldSnapshot"]
