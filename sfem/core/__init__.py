from sfem.core.cache import Cache, CachedValue
from sfem.core.cross_section import CrossSection
from sfem.core.dof import (
    DegreeOfFreedom, ModelType, NodalDegreeOfFreedom,
    allowed_degrees_of_freedom_for_boundary_conditions
)
from sfem.core.element import (
    FiniteElement, Linear3DBeam, LinearTruss, LineElement
)
from sfem.core.keyed import KeyedSquareMatrix, KeyedVector
from sfem.core.loads import ForceVector
from sfem.core.material import Material
from sfem.core.model import FiniteElementModel
from sfem.core.node import Node
from sfem.core.stiffness import *  # noqa: F401, F403
from sfem.core.stiffness_matrix import StiffnessMatrix

__all__ = [
    'Cache',
    'CachedValue',
    'CrossSection',
    'DegreeOfFreedom',
    'ElementStiffnessMatrixBuilder',
    'FiniteElement',
    'FiniteElementModel',
    'ForceVector',
    'KeyedSquareMatrix',
    'KeyedVector',
    'Linear3DBeam',
    'Linear3DBernoulliBeamStiffnessMatrixBuilder',
    'LinearTruss',
    'LinearTrussStiffnessMatrixBuilder',
    'LineElement',
    'Material',
    'ModelType',
    'NodalDegreeOfFreedom',
    'Node',
    'NonSingularMatrixError',
    'StiffnessMatrix',
    'allowed_degrees_of_freedom_for_boundary_conditions',
]
