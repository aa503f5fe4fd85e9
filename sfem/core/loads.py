from dataclasses import dataclass, fields

import numpy as np

from sfem.core.dof import DegreeOfFreedom


@dataclass(frozen=True)
class ForceVector:
    """Force and moment components applied to a node.

    Parameters
    ----------
    x, y, z : :any:`float`, default=0.0
        Force components along the global axes.
    xx, yy, zz : :any:`float`, default=0.0
        Moment components about the global axes.

    Examples
    --------
    >>> from sfem.core.dof import DegreeOfFreedom
    >>> from sfem.core.loads import ForceVector
    >>> f = ForceVector(z=-10) + ForceVector(x=2, z=-5)
    >>> f.value(DegreeOfFreedom.Z)
    -15
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    xx: float = 0.0
    yy: float = 0.0
    zz: float = 0.0

    @classmethod
    def zero(cls) -> 'ForceVector':
        return cls()

    def value(self, dof: DegreeOfFreedom) -> float:
        """Component of this force in the given degree of freedom."""
        return getattr(self, dof.value)

    @property
    def vector(self) -> np.ndarray:
        return np.array([getattr(self, f.name) for f in fields(self)],
                        dtype=float)

    def __add__(self, other):
        if not isinstance(other, ForceVector):
            return NotImplemented
        return ForceVector(*(
            getattr(self, f.name) + getattr(other, f.name)
            for f in fields(self)
        ))
