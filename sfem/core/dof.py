from dataclasses import dataclass
from enum import Enum


class DegreeOfFreedom(Enum):
    """The six rigid-body directions in which a node can move.

    ``X``, ``Y`` and ``Z`` are translations along the axes, ``XX``, ``YY``
    and ``ZZ`` are rotations about them.
    """

    X = 'x'
    Y = 'y'
    Z = 'z'
    XX = 'xx'
    YY = 'yy'
    ZZ = 'zz'

    @property
    def is_translation(self) -> bool:
        return self in TRANSLATIONS

    @property
    def is_rotation(self) -> bool:
        return self in ROTATIONS


TRANSLATIONS = (DegreeOfFreedom.X, DegreeOfFreedom.Y, DegreeOfFreedom.Z)
ROTATIONS = (DegreeOfFreedom.XX, DegreeOfFreedom.YY, DegreeOfFreedom.ZZ)


@dataclass(frozen=True)
class NodalDegreeOfFreedom:
    """A degree of freedom at a particular node.

    Used as the row and column key of stiffness matrices and as the key of
    force and displacement vectors.

    Parameters
    ----------
    node : :any:`Node`
        The node. Nodes compare by identity, so two keys are equal only if
        they refer to the very same node instance.
    dof : :any:`DegreeOfFreedom`
        The direction at that node.

    Raises
    ------
    ValueError
        :py:attr:`node` is :python:`None` or :py:attr:`dof` is not a
        :any:`DegreeOfFreedom`.
    """

    node: object
    dof: DegreeOfFreedom

    def __post_init__(self):
        if self.node is None:
            raise ValueError('node must not be None.')
        if not isinstance(self.dof, DegreeOfFreedom):
            raise ValueError(
                f'{self.dof!r} is not a DegreeOfFreedom.'
            )

    def __str__(self):
        return f'{getattr(self.node, "name", self.node)}:{self.dof.name}'


class ModelType(Enum):
    """Analysis type of a finite element model.

    Each member carries the ordered degrees of freedom that may be
    constrained by boundary conditions in a model of that type.

    Examples
    --------
    >>> from sfem.core.dof import DegreeOfFreedom, ModelType
    >>> ModelType.TRUSS_2D.allowed_degrees_of_freedom_for_boundary_conditions()
    (<DegreeOfFreedom.X: 'x'>, <DegreeOfFreedom.Z: 'z'>)
    >>> ModelType.FRAME_2D.is_allowed_degree_of_freedom_for_boundary_conditions(
    ...     DegreeOfFreedom.XX)
    False
    """

    TRUSS_1D = (DegreeOfFreedom.X,)
    TRUSS_2D = (DegreeOfFreedom.X, DegreeOfFreedom.Z)
    TRUSS_3D = TRANSLATIONS
    FRAME_2D = (DegreeOfFreedom.X, DegreeOfFreedom.Z, DegreeOfFreedom.YY)
    MEMBRANE_2D = (DegreeOfFreedom.X, DegreeOfFreedom.Y)
    SLAB_2D = (DegreeOfFreedom.Z, DegreeOfFreedom.XX, DegreeOfFreedom.YY)
    FULL_3D = TRANSLATIONS + ROTATIONS

    def allowed_degrees_of_freedom_for_boundary_conditions(
            self
    ) -> tuple[DegreeOfFreedom, ...]:
        return self.value

    def is_allowed_degree_of_freedom_for_boundary_conditions(
            self, dof: DegreeOfFreedom
    ) -> bool:
        return dof in self.value


def allowed_degrees_of_freedom_for_boundary_conditions(
        model_type: ModelType
) -> tuple[DegreeOfFreedom, ...]:
    """Degrees of freedom which may be constrained in a model of the given
    type.

    Raises
    ------
    ValueError
        :py:attr:`model_type` is not a :any:`ModelType`.
    """
    if not isinstance(model_type, ModelType):
        raise ValueError(f'{model_type!r} is not a ModelType.')
    return model_type.allowed_degrees_of_freedom_for_boundary_conditions()
