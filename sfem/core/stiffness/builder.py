import logging
from abc import ABC, abstractmethod
from typing import Literal

from sfem.core.cache import Cache
from sfem.core.dof import (
    DegreeOfFreedom, NodalDegreeOfFreedom, ROTATIONS, TRANSLATIONS
)
from sfem.core.keyed import KeyedSquareMatrix
from sfem.core.logger_mixin import LoggerMixin, table_matrix
from sfem.core.stiffness_matrix import StiffnessMatrix


class NonSingularMatrixError(RuntimeError):
    """Raised when an element stiffness matrix is not singular.

    An element which is not yet part of a supported system must be able to
    move as a rigid body, so its stiffness matrix has a zero determinant.
    A regular matrix means the formulation (``stage='local'``) or the
    rotation (``stage='global'``) is wrong.

    Attributes
    ----------
    element : :any:`FiniteElement`
        The element whose matrix was built.
    formulation : :any:`str`
        Class name of the builder which produced the matrix.
    stage : {'local', 'global'}
        Which of the two matrices failed the check.
    """

    def __init__(self, element, formulation: str,
                 stage: Literal['local', 'global']):
        self.element = element
        self.formulation = formulation
        self.stage = stage
        prefix = 'The' if stage == 'local' else 'The global'
        super().__init__(
            f'{prefix} stiffness matrix for an individual element should be '
            f'singular and non-invertible, i.e. it should have a zero '
            f'determinant. This is not the case for element {element} of '
            f'type {type(element).__name__} built by {formulation}.'
        )


class ElementStiffnessMatrixBuilder(LoggerMixin, ABC):
    """Base class of the stiffness formulations of finite elements.

    A builder belongs to exactly one element. It derives the element's
    stiffness matrix in local coordinates (:py:meth:`local_stiffness_matrix`,
    implemented by subclasses), rotates it into global coordinates and keeps
    the result until the element changes.

    Parameters
    ----------
    element : :any:`FiniteElement`
        The element to compute the stiffness of.
    debug : :any:`bool`, default=False
        Log every rebuild, including the matrices, at debug level.

    Raises
    ------
    ValueError
        :py:attr:`element` is :python:`None`.

    Notes
    -----
        The cached global matrix is tied to :py:attr:`FiniteElement.version`.
        Reading :py:attr:`stiffness_matrix_in_global_coordinates` compares
        the current version with the version the cached matrix was built
        for and rebuilds only if they differ. The read-check-write sequence
        is not synchronized; a builder must not be shared between threads.
    """

    singularity_rtol: float = 1e-10
    """Relative tolerance of the singularity check. Singular values below
    ``singularity_rtol`` times the largest singular value count as zero."""

    def __init__(self, element, debug: bool = False):
        if element is None:
            raise ValueError('element must not be None.')
        self._element = element
        self._cache = Cache()

    @property
    def element(self):
        return self._element

    @abstractmethod
    def local_stiffness_matrix(self) -> StiffnessMatrix:
        """Stiffness matrix in the element's local coordinate system.

        The matrix is keyed by every supported degree of freedom at every
        node of the element and must not have side effects.
        """

    @property
    def stiffness_matrix_in_global_coordinates(self) -> StiffnessMatrix:
        """The stiffness matrix of the element rotated to global coordinates.

        Rebuilt only if :py:attr:`FiniteElement.version` changed since the
        last build. The returned matrix is read-only.

        Raises
        ------
        NonSingularMatrixError
            The local or the rotated matrix is not singular.
        """
        version = self.element.version
        hit, matrix = self._cache.lookup(self.element, version)
        if hit:
            self.logger.debug(
                f"Element version {version} unchanged, using cached matrix.")
            return matrix
        self.logger.debug(
            f"Element version {version} not cached, building global "
            f"stiffness matrix.")
        matrix = self._build_global_stiffness_matrix()
        self._cache.save(self.element, matrix, version)
        return matrix

    def get_stiffness_in_global_coordinates_at(
            self, row_node, row_dof: DegreeOfFreedom, column_node,
            column_dof: DegreeOfFreedom
    ) -> float:
        """Exact stiffness value for a node and degree of freedom
        combination.

        Parameters
        ----------
        row_node : :any:`Node`
            The node defining the row (force equations).
        row_dof : :any:`DegreeOfFreedom`
            The degree of freedom defining the row.
        column_node : :any:`Node`
            The node defining the column (displacement equations).
        column_dof : :any:`DegreeOfFreedom`
            The degree of freedom defining the column.

        Raises
        ------
        ValueError
            Either node is :python:`None`, is not part of this element, or
            a degree of freedom is not supported by this element.
        """
        if row_node is None:
            raise ValueError('row_node must not be None.')
        if column_node is None:
            raise ValueError('column_node must not be None.')
        return self.stiffness_matrix_in_global_coordinates.at(
            row_node, row_dof, column_node, column_dof
        )

    def rotation_matrix_from_local_to_global(self) -> KeyedSquareMatrix:
        r"""Block diagonal matrix :math:`T` rotating the element's degrees of
        freedom.

        For every node the translational block is the element's 3x3
        rotation matrix and the rotational block is the identity. Only
        degrees of freedom supported by the element appear, so elements
        without rotational freedoms get no rotational block.

        .. math::
            T_{node} = \left[\begin{array}{cc}
            R & 0 \\
            0 & I
            \end{array}\right]
        """
        rotation = self.element.rotation_matrix()
        supported = self.element.supported_degrees_of_freedom
        t = KeyedSquareMatrix(self.element.supported_nodal_degrees_of_freedom)

        for node in self.element.nodes:
            for i, row_dof in enumerate(TRANSLATIONS):
                if row_dof not in supported:
                    continue
                for j, column_dof in enumerate(TRANSLATIONS):
                    if column_dof in supported:
                        t.set(NodalDegreeOfFreedom(node, row_dof),
                              NodalDegreeOfFreedom(node, column_dof),
                              rotation[i, j])
            for dof in ROTATIONS:
                if dof in supported:
                    key = NodalDegreeOfFreedom(node, dof)
                    t.set(key, key, 1.0)
        return t

    def _check_singular(self, matrix: KeyedSquareMatrix,
                        stage: Literal['local', 'global']):
        if matrix.is_singular(self.singularity_rtol):
            self.logger.debug(f"The {stage} stiffness matrix is singular.")
            return
        error = NonSingularMatrixError(
            self.element, type(self).__name__, stage
        )
        self.logger.error(str(error))
        raise error

    def _build_global_stiffness_matrix(self) -> StiffnessMatrix:
        verbose = self.logger.isEnabledFor(logging.DEBUG)
        k = self.local_stiffness_matrix()
        if verbose:
            self.logger.debug(f"Local stiffness matrix:\n{table_matrix(k)}")
        self._check_singular(k, 'local')

        t = self.rotation_matrix_from_local_to_global()

        # K_global = T^T * K * T
        k_global = StiffnessMatrix.from_keyed(
            t.transpose().multiply(k.multiply(t))
        )
        if verbose:
            self.logger.debug(
                f"Global stiffness matrix:\n{table_matrix(k_global)}")
        self._check_singular(k_global, 'global')
        return k_global.freeze()
