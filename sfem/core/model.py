import logging
from dataclasses import dataclass
from typing import Iterable

from sfem.core.dof import DegreeOfFreedom, ModelType, NodalDegreeOfFreedom
from sfem.core.element import FiniteElement
from sfem.core.keyed import KeyedVector
from sfem.core.loads import ForceVector
from sfem.core.logger_mixin import LoggerMixin, table_vector
from sfem.core.node import Node


@dataclass(eq=False)
class FiniteElementModel(LoggerMixin):
    """A finite element model is composed of nodes connected by finite
    elements. These nodes can be constrained and can have forces applied to
    them.

    The model partitions its degrees of freedom for a linear solve:

    * unconstrained degrees of freedom have a known force (zero unless a
      force is applied) and an unknown displacement,
    * constrained degrees of freedom have a known displacement (zero) and an
      unknown reaction force.

    Parameters
    ----------
    model_type : :any:`ModelType`
        The axes in which this model is constrained and the type of analysis
        expected on it.
    debug : :any:`bool`, default=False
        Enables debug logging.

    Raises
    ------
    ValueError
        :py:attr:`model_type` is not a :any:`ModelType`.

    Notes
    -----
        All degree of freedom lists share one stable ordering: nodes in the
        order they were added, and for each node the degrees of freedom in
        the order of
        :py:meth:`ModelType.allowed_degrees_of_freedom_for_boundary_conditions`.
        The partitions are recomputed on every access.
    """

    model_type: ModelType
    debug: bool = False

    def __post_init__(self):
        if not isinstance(self.model_type, ModelType):
            raise ValueError(f'{self.model_type!r} is not a ModelType.')
        self._nodes: dict[Node, set[DegreeOfFreedom]] = {}
        self._elements: list[FiniteElement] = []
        self._forces: dict[Node, list[ForceVector]] = {}
        self.logger.debug(f"Created {self.model_type.name} model.")

    # NODES AND ELEMENTS ---------------------------------------------
    def add_node(self, node: Node) -> Node:
        """Add a node to the model. Adding a node twice has no effect."""
        if node is None:
            raise ValueError('node must not be None.')
        self._nodes.setdefault(node, set())
        return node

    def add_element(self, element: FiniteElement) -> FiniteElement:
        """Add an element and all of its nodes to the model."""
        if element is None:
            raise ValueError('element must not be None.')
        for node in element.nodes:
            self.add_node(node)
        if not any(element is own for own in self._elements):
            self._elements.append(element)
        return element

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes)

    @property
    def elements(self) -> list[FiniteElement]:
        return list(self._elements)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def element_count(self) -> int:
        return len(self._elements)

    def _check_node(self, node: Node):
        if node is None:
            raise ValueError('node must not be None.')
        if node not in self._nodes:
            raise ValueError(f'Node {node.name} is not part of this model.')

    def get_all_elements_connected_to(self, node: Node
                                      ) -> list[FiniteElement]:
        """All elements which are connected to the provided node.

        Raises
        ------
        ValueError
            :py:attr:`node` is :python:`None` or no element is attached to
            it.
        """
        if node is None:
            raise ValueError('node must not be None.')
        connected = [e for e in self._elements if e.has_node(node)]
        if not connected:
            raise ValueError(
                'No elements could be found which are attached to the '
                'provided node. Please ensure that the node is part of this '
                'model and that an element is connected to it.'
            )
        return connected

    def get_all_elements_directly_connecting(self, node1: Node, node2: Node
                                             ) -> list[FiniteElement]:
        if node1 is None or node2 is None:
            raise ValueError('node1 and node2 must not be None.')
        return [e for e in self._elements
                if e.has_node(node1) and e.has_node(node2)]

    def stiffness_builders(self) -> list:
        """The stiffness builder of every element, in element order."""
        return [element.stiffness_builder for element in self._elements]

    # BOUNDARY CONDITIONS --------------------------------------------
    def constrain_node(self, node: Node, dof: DegreeOfFreedom):
        """Constrain a node in the given degree of freedom.

        Raises
        ------
        ValueError
            The node is not part of the model, or :py:attr:`dof` may not be
            constrained in a model of this :py:attr:`model_type`. The model
            is left unchanged.
        """
        self._check_node(node)
        model_type = self.model_type
        if not model_type.is_allowed_degree_of_freedom_for_boundary_conditions(
                dof):
            self.logger.warning(
                f"Rejected constraint {dof!r} on node {node.name} in "
                f"{self.model_type.name} model.")
            raise ValueError(
                f'Cannot constrain {dof!r} in a {self.model_type.name} model.'
            )
        self._nodes[node].add(dof)
        self.logger.info(f"Constrained node {node.name} in {dof.name}.")

    def unconstrain_node(self, node: Node, dof: DegreeOfFreedom):
        self._check_node(node)
        self._nodes[node].discard(dof)
        self.logger.info(f"Freed node {node.name} in {dof.name}.")

    def is_constrained(self, node: Node, dof: DegreeOfFreedom) -> bool:
        self._check_node(node)
        return dof in self._nodes[node]

    # DEGREE OF FREEDOM PARTITIONS -----------------------------------
    def allowed_degrees_of_freedom_for_boundary_conditions(
            self
    ) -> tuple[DegreeOfFreedom, ...]:
        model_type = self.model_type
        return model_type.allowed_degrees_of_freedom_for_boundary_conditions()

    @property
    def all_degrees_of_freedom(self) -> list[NodalDegreeOfFreedom]:
        allowed = self.allowed_degrees_of_freedom_for_boundary_conditions()
        return [
            NodalDegreeOfFreedom(node, dof)
            for node in self._nodes
            for dof in allowed
        ]

    def _partition(self, constrained: bool) -> list[NodalDegreeOfFreedom]:
        return [
            key for key in self.all_degrees_of_freedom
            if (key.dof in self._nodes[key.node]) == constrained
        ]

    @property
    def degrees_of_freedom_with_known_force(
            self
    ) -> list[NodalDegreeOfFreedom]:
        """All node and degree of freedom combinations with a known force.

        Notes
        -----
            This is exactly the list of unknown displacements. A node without
            an external force has a known force as well: zero. A force
            applied to a constrained node does not make its reaction known.
        """
        return self._partition(constrained=False)

    @property
    def degrees_of_freedom_with_unknown_displacement(
            self
    ) -> list[NodalDegreeOfFreedom]:
        return self._partition(constrained=False)

    @property
    def degrees_of_freedom_with_known_displacement(
            self
    ) -> list[NodalDegreeOfFreedom]:
        """All constrained node and degree of freedom combinations."""
        return self._partition(constrained=True)

    @property
    def degrees_of_freedom_with_unknown_force(
            self
    ) -> list[NodalDegreeOfFreedom]:
        return self._partition(constrained=True)

    # LOADS ----------------------------------------------------------
    def apply_force_to_node(self, force: ForceVector, node: Node):
        """Apply an external force to a node of the model.

        Several forces may be applied to the same node; they are summed.
        """
        if force is None:
            raise ValueError('force must not be None.')
        self._check_node(node)
        self._forces.setdefault(node, []).append(force)

    def get_combined_force_on(self, node: Node) -> ForceVector:
        combined = ForceVector.zero()
        for force in self._forces.get(node, ()):
            combined = combined + force
        return combined

    def get_combined_forces_for(
            self, nodal_dofs: Iterable[NodalDegreeOfFreedom]
    ) -> KeyedVector:
        """Combined applied force for each requested node and degree of
        freedom, keyed and ordered like :py:attr:`nodal_dofs`."""
        result = KeyedVector(nodal_dofs)
        for key in result.keys:
            result[key] = self.get_combined_force_on(key.node).value(key.dof)
        return result

    def known_force_vector(self) -> KeyedVector:
        """Force component of every degree of freedom with a known force,
        ordered like :py:attr:`degrees_of_freedom_with_known_force`."""
        result = self.get_combined_forces_for(
            self.degrees_of_freedom_with_known_force
        )
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                f"Known forces:\n{table_vector(result, 'force')}")
        return result

    def known_displacement_vector(self) -> KeyedVector:
        """Displacement of every constrained degree of freedom, ordered like
        :py:attr:`degrees_of_freedom_with_known_displacement`.

        Notes
        -----
            Constraints are fixed at zero displacement. Prescribed non-zero
            support displacements are not supported.
        """
        result = KeyedVector(self.degrees_of_freedom_with_known_displacement,
                             0.0)
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                f"Known displacements:\n{table_vector(result, 'displacement')}")
        return result
