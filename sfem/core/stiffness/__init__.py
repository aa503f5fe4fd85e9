from sfem.core.stiffness.beam import (
    Linear3DBernoulliBeamStiffnessMatrixBuilder
)
from sfem.core.stiffness.builder import (
    ElementStiffnessMatrixBuilder, NonSingularMatrixError
)
from sfem.core.stiffness.truss import LinearTrussStiffnessMatrixBuilder

__all__ = [
    'ElementStiffnessMatrixBuilder',
    'Linear3DBernoulliBeamStiffnessMatrixBuilder',
    'LinearTrussStiffnessMatrixBuilder',
    'NonSingularMatrixError',
]
