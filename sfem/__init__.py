
from sfem.core import (
    Cache, CrossSection, DegreeOfFreedom, ElementStiffnessMatrixBuilder,
    FiniteElement, FiniteElementModel, ForceVector, KeyedSquareMatrix,
    KeyedVector, Linear3DBeam, Linear3DBernoulliBeamStiffnessMatrixBuilder,
    LinearTruss, LinearTrussStiffnessMatrixBuilder, Material, ModelType,
    NodalDegreeOfFreedom, Node, NonSingularMatrixError, StiffnessMatrix,
    allowed_degrees_of_freedom_for_boundary_conditions
)

__all__ = [
    'Cache',
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
    'Material',
    'ModelType',
    'NodalDegreeOfFreedom',
    'Node',
    'NonSingularMatrixError',
    'StiffnessMatrix',
    'allowed_degrees_of_freedom_for_boundary_conditions',
]
