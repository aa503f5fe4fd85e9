from sfem.core.dof import DegreeOfFreedom
from sfem.core.stiffness.builder import ElementStiffnessMatrixBuilder
from sfem.core.stiffness_matrix import StiffnessMatrix


class LinearTrussStiffnessMatrixBuilder(ElementStiffnessMatrixBuilder):
    r"""Stiffness of a two node bar carrying axial force only.

    Only the local x-direction is stiff:

    .. math::
        k = \dfrac{EA}{L} \left[\begin{array}{cc}
        1 & -1 \\
        -1 & 1
        \end{array}\right]

    The local y- and z-rows stay zero. Trusses have no rotational degrees of
    freedom, so their rotation matrix has no rotational block.
    """

    def local_stiffness_matrix(self) -> StiffnessMatrix:
        element = self.element
        k = StiffnessMatrix(element.supported_nodal_degrees_of_freedom)
        axial = (element.cross_section.area * element.material.young_mod /
                 element.original_length)
        k.set_corners(element.start_node, element.end_node,
                      DegreeOfFreedom.X, DegreeOfFreedom.X,
                      axial, -axial, -axial, axial)
        return k
