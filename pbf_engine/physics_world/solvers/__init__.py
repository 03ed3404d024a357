"""Collection of solvers used by the physics world."""
