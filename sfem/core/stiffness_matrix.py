from typing import Iterable

from sfem.core.dof import DegreeOfFreedom, NodalDegreeOfFreedom
from sfem.core.keyed import KeyedSquareMatrix


class StiffnessMatrix(KeyedSquareMatrix):
    r"""Square stiffness matrix keyed by :any:`NodalDegreeOfFreedom`.

    Rows are force equations and columns are displacements, one of each per
    combination of node and supported degree of freedom of an element.

    Parameters
    ----------
    keys : iterable of :any:`NodalDegreeOfFreedom`
        Row and column keys.
    values : array_like, optional
        Initial values. Zeros if omitted.

    Raises
    ------
    ValueError
        A key is not a :any:`NodalDegreeOfFreedom`.

    Notes
    -----
        An element stiffness matrix is singular before it is assembled into
        a supported system: an unsupported body can move as a rigid body
        without any resisting force.
    """

    def __init__(self, keys: Iterable[NodalDegreeOfFreedom], values=None):
        super().__init__(keys, values)
        for key in self.keys:
            if not isinstance(key, NodalDegreeOfFreedom):
                raise ValueError(
                    f'{key!r} is not a NodalDegreeOfFreedom.'
                )

    @classmethod
    def from_keyed(cls, matrix: KeyedSquareMatrix) -> 'StiffnessMatrix':
        """Wrap the values of a keyed matrix, e.g. the result of a keyed
        multiplication."""
        return cls(matrix.keys, matrix.to_array())

    def at(self, row_node, row_dof: DegreeOfFreedom, column_node,
           column_dof: DegreeOfFreedom) -> float:
        """Stiffness relating the force at (:py:attr:`row_node`,
        :py:attr:`row_dof`) to the displacement at (:py:attr:`column_node`,
        :py:attr:`column_dof`).

        Raises
        ------
        ValueError
            One of the node/DOF combinations is not part of this matrix.
        """
        return self.get(NodalDegreeOfFreedom(row_node, row_dof),
                        NodalDegreeOfFreedom(column_node, column_dof))

    def set_at(self, row_node, row_dof: DegreeOfFreedom, column_node,
               column_dof: DegreeOfFreedom, value: float):
        self.set(NodalDegreeOfFreedom(row_node, row_dof),
                 NodalDegreeOfFreedom(column_node, column_dof), value)

    def set_corners(self, node_a, node_b, row_dof: DegreeOfFreedom,
                    column_dof: DegreeOfFreedom, aa: float, ab: float,
                    ba: float, bb: float):
        r"""Write the four corners of the block coupling two nodes at once.

        For the given row and column degrees of freedom the entries are

        .. math::
            \left[\begin{array}{cc}
            k_{aa} & k_{ab} \\
            k_{ba} & k_{bb}
            \end{array}\right]

        where the first index selects the row node and the second index the
        column node.

        Examples
        --------
        >>> from sfem.core.dof import DegreeOfFreedom
        >>> k.set_corners(start, end, DegreeOfFreedom.X, DegreeOfFreedom.X,
        ...               ea_l, -ea_l, -ea_l, ea_l)
        """
        self.set_at(node_a, row_dof, node_a, column_dof, aa)
        self.set_at(node_a, row_dof, node_b, column_dof, ab)
        self.set_at(node_b, row_dof, node_a, column_dof, ba)
        self.set_at(node_b, row_dof, node_b, column_dof, bb)
