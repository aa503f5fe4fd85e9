from dataclasses import dataclass

import numpy as np


@dataclass(eq=False)
class Node:
    """Create a node of a finite element model.

    Parameters
    ----------
    x, y, z : :any:`float`
        Coordinates of the node in the global coordinate system.
    label : :any:`str`, optional
        Name used in log output and tables.

    Notes
    -----
        Nodes compare by identity. Two distinct nodes at the same location
        are different nodes, and moving a node keeps it the same node.
        Moving a node changes the geometry of every element attached to it.
    """

    x: float
    y: float
    z: float
    label: str | None = None

    @property
    def coordinates(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    @property
    def name(self) -> str:
        if self.label is not None:
            return self.label
        return f'({self.x:g}, {self.y:g}, {self.z:g})'

    def same_location(self, other) -> bool:
        """Determine if two nodes have exactly the same coordinates."""
        return (self.x == other.x and self.y == other.y and
                self.z == other.z)

    def distance_to(self, other) -> float:
        return float(np.linalg.norm(other.coordinates - self.coordinates))
