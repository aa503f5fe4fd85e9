import logging
from abc import ABC, abstractmethod
from dataclasses import astuple
from functools import cached_property
from typing import Iterable

import numpy as np

from sfem.core.cross_section import CrossSection
from sfem.core.dof import (
    DegreeOfFreedom, NodalDegreeOfFreedom, ROTATIONS, TRANSLATIONS
)
from sfem.core.logger_mixin import LoggerMixin, table_rotation
from sfem.core.material import Material
from sfem.core.node import Node
from sfem.core.stiffness.beam import (
    Linear3DBernoulliBeamStiffnessMatrixBuilder
)
from sfem.core.stiffness.truss import LinearTrussStiffnessMatrixBuilder

GLOBAL_X = np.array([1.0, 0.0, 0.0])
GLOBAL_Y = np.array([0.0, 1.0, 0.0])
GLOBAL_Z = (0.0, 0.0, 1.0)


class FiniteElement(LoggerMixin, ABC):
    """Base class of all finite elements.

    An element connects an ordered sequence of nodes and supports a fixed,
    ordered set of degrees of freedom at each of them. Its stiffness is
    computed by the builder named in :py:attr:`builder_type`; every element
    owns exactly one builder instance.

    Parameters
    ----------
    nodes : iterable of :any:`Node`
        The nodes connected by the element.
    debug : :any:`bool`, default=False
        Enables debug logging of the element and its builder.

    Raises
    ------
    ValueError
        A node is :python:`None` or the same node occurs twice.
    """

    supported_degrees_of_freedom: tuple[DegreeOfFreedom, ...] = ()
    builder_type = None

    def __init__(self, nodes: Iterable[Node], debug: bool = False):
        nodes = tuple(nodes)
        if any(node is None for node in nodes):
            raise ValueError('nodes must not be None.')
        if len({id(node) for node in nodes}) != len(nodes):
            raise ValueError('An element cannot connect a node to itself.')
        self._nodes = nodes
        self._debug = debug

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._nodes

    @property
    def supported_nodal_degrees_of_freedom(
            self
    ) -> list[NodalDegreeOfFreedom]:
        """Every supported degree of freedom at every node, node by node."""
        return [
            NodalDegreeOfFreedom(node, dof)
            for node in self._nodes
            for dof in self.supported_degrees_of_freedom
        ]

    def has_node(self, node: Node) -> bool:
        return any(node is own for own in self._nodes)

    @property
    def version(self) -> int:
        """Token which changes whenever any state affecting the stiffness of
        the element changes.

        Notes
        -----
            The token is a hash over the element type, the identity and
            coordinates of its nodes and all further stiffness relevant
            attributes (see :py:meth:`_stiffness_state`).
        """
        return hash(self._stiffness_state())

    @abstractmethod
    def _stiffness_state(self) -> tuple:
        """All hashable state the stiffness of this element depends on."""

    @abstractmethod
    def rotation_matrix(self) -> np.ndarray:
        """3x3 matrix whose rows are the local axes in global coordinates.

        It maps vectors from global to local coordinates.
        """

    @cached_property
    def stiffness_builder(self):
        """The builder computing and caching this element's stiffness."""
        return self.builder_type(self, debug=self._debug)

    @property
    def stiffness_matrix_in_global_coordinates(self):
        return self.stiffness_builder.stiffness_matrix_in_global_coordinates

    def __repr__(self):
        names = ', '.join(node.name for node in self._nodes)
        return f'{self.__class__.__name__}({names})'


class LineElement(FiniteElement):
    r"""A straight element between a start and an end node.

    Parameters
    ----------
    start_node, end_node : :any:`Node`
        The ends of the element. The local x-axis points from
        :py:attr:`start_node` to :py:attr:`end_node`.
    material : :any:`Material`
        Material of the element.
    cross_section : :any:`CrossSection`
        Cross-section of the element.
    reference_vector : array_like, default=(0, 0, 1)
        Orients the local y- and z-axes:
        :math:`y = \frac{r \times x}{|r \times x|}` and :math:`z = x \times y`.
        If it is parallel to the element, the global X-axis (or, failing
        that, the global Y-axis) is used instead.
    debug : :any:`bool`, default=False
        Enables debug logging.

    Raises
    ------
    ValueError
        A node, :py:attr:`material` or :py:attr:`cross_section` is
        :python:`None`, both nodes share a location or
        :py:attr:`reference_vector` is not a non-zero 3-vector.

    Notes
    -----
        Nodes, material, cross-section and reference vector may be changed
        after construction. Any such change results in a new
        :py:attr:`version` and therefore in a rebuild of the stiffness
        matrix on next access.
    """

    def __init__(self, start_node: Node, end_node: Node, material: Material,
                 cross_section: CrossSection,
                 reference_vector: Iterable[float] = GLOBAL_Z,
                 debug: bool = False):
        super().__init__((start_node, end_node), debug=debug)
        if material is None:
            raise ValueError('material must not be None.')
        if cross_section is None:
            raise ValueError('cross_section must not be None.')
        if start_node.same_location(end_node):
            raise ValueError(
                'start_node and end_node need to have different locations.'
            )
        self.material = material
        self.cross_section = cross_section
        self.reference_vector = reference_vector

    @property
    def start_node(self) -> Node:
        return self._nodes[0]

    @property
    def end_node(self) -> Node:
        return self._nodes[-1]

    @property
    def reference_vector(self) -> tuple[float, float, float]:
        return self._reference_vector

    @reference_vector.setter
    def reference_vector(self, value: Iterable[float]):
        vector = tuple(float(v) for v in value)
        if len(vector) != 3 or not any(vector):
            raise ValueError('reference_vector has to be a non-zero '
                             '3-vector.')
        self._reference_vector = vector

    @property
    def original_length(self) -> float:
        """Length of the undeformed element.

        Raises
        ------
        ValueError
            The nodes have been moved onto each other.
        """
        length = self.start_node.distance_to(self.end_node)
        if length <= 0.0:
            raise ValueError(f'{self!r} has zero length.')
        return length

    def _stiffness_state(self) -> tuple:
        return (
            type(self).__name__,
            tuple((id(node), node.x, node.y, node.z) for node in self._nodes),
            astuple(self.material),
            astuple(self.cross_section),
            self._reference_vector,
        )

    def rotation_matrix(self) -> np.ndarray:
        x_axis = (
            self.end_node.coordinates - self.start_node.coordinates
        ) / self.original_length

        for candidate in (np.array(self._reference_vector), GLOBAL_X,
                          GLOBAL_Y):
            y_axis = np.cross(candidate, x_axis)
            norm = np.linalg.norm(y_axis)
            if norm > 1e-9 * np.linalg.norm(candidate):
                break
        y_axis = y_axis / norm
        z_axis = np.cross(x_axis, y_axis)

        rotation = np.vstack((x_axis, y_axis, z_axis))
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                f"Rotation matrix of {self!r}:\n{table_rotation(rotation)}")
        return rotation


class LinearTruss(LineElement):
    """A bar which carries axial force only.

    Supports the translations X, Y and Z at both nodes. The
    :py:attr:`reference_vector` has no influence on its stiffness.
    """

    supported_degrees_of_freedom = TRANSLATIONS
    builder_type = LinearTrussStiffnessMatrixBuilder


class Linear3DBeam(LineElement):
    """A 3D Euler-Bernoulli beam with six degrees of freedom per node."""

    supported_degrees_of_freedom = TRANSLATIONS + ROTATIONS
    builder_type = Linear3DBernoulliBeamStiffnessMatrixBuilder
