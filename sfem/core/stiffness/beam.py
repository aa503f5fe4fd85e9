from sfem.core.dof import DegreeOfFreedom
from sfem.core.stiffness.builder import ElementStiffnessMatrixBuilder
from sfem.core.stiffness_matrix import StiffnessMatrix

X, Y, Z = DegreeOfFreedom.X, DegreeOfFreedom.Y, DegreeOfFreedom.Z
XX, YY, ZZ = DegreeOfFreedom.XX, DegreeOfFreedom.YY, DegreeOfFreedom.ZZ


class Linear3DBernoulliBeamStiffnessMatrixBuilder(
        ElementStiffnessMatrixBuilder):
    r"""Stiffness of a two node Euler-Bernoulli beam in 3D.

    Each node has six degrees of freedom, which gives a 12x12 matrix. Shear
    deformations are neglected.

    Notes
    -----
    With :math:`L` the original length of the element the non-zero terms
    are

    * axial :math:`EA/L` (X),
    * shear :math:`12 E I_{zz}/L^3` (Y) and :math:`12 E I_{yy}/L^3` (Z),
    * torsion :math:`G J/L` (XX),
    * bending :math:`4 E I/L` on the diagonal and :math:`2 E I/L` between
      the nodes (YY and ZZ),
    * coupling of transverse displacement and end rotation
      :math:`\pm 6 E I/L^2`; Y couples with ZZ and Z with YY with opposite
      sign.
    """

    def local_stiffness_matrix(self) -> StiffnessMatrix:
        element = self.element
        start, end = element.start_node, element.end_node
        length = element.original_length
        young_mod = element.material.young_mod
        shear_mod = element.material.shear_mod
        section = element.cross_section

        k = StiffnessMatrix(element.supported_nodal_degrees_of_freedom)

        axial = section.area * young_mod / length
        k.set_corners(start, end, X, X, axial, -axial, -axial, axial)

        shear_y = 12 * young_mod * section.mom_of_int_zz / length ** 3
        k.set_corners(start, end, Y, Y, shear_y, -shear_y, -shear_y, shear_y)

        shear_z = 12 * young_mod * section.mom_of_int_yy / length ** 3
        k.set_corners(start, end, Z, Z, shear_z, -shear_z, -shear_z, shear_z)

        torsion = shear_mod * section.torsion_const / length
        k.set_corners(start, end, XX, XX, torsion, -torsion, -torsion,
                      torsion)

        bending_yy = 2 * young_mod * section.mom_of_int_yy / length
        k.set_corners(start, end, YY, YY, 2 * bending_yy, bending_yy,
                      bending_yy, 2 * bending_yy)

        bending_zz = 2 * young_mod * section.mom_of_int_zz / length
        k.set_corners(start, end, ZZ, ZZ, 2 * bending_zz, bending_zz,
                      bending_zz, 2 * bending_zz)

        shear_y_bending_zz = 6 * young_mod * section.mom_of_int_zz / length ** 2
        k.set_corners(start, end, Y, ZZ, shear_y_bending_zz,
                      shear_y_bending_zz, -shear_y_bending_zz,
                      -shear_y_bending_zz)
        k.set_corners(start, end, ZZ, Y, shear_y_bending_zz,
                      -shear_y_bending_zz, shear_y_bending_zz,
                      -shear_y_bending_zz)

        # opposite sign: rotation about y lifts the beam end in -z
        shear_z_bending_yy = 6 * young_mod * section.mom_of_int_yy / length ** 2
        k.set_corners(start, end, Z, YY, -shear_z_bending_yy,
                      -shear_z_bending_yy, shear_z_bending_yy,
                      shear_z_bending_yy)
        k.set_corners(start, end, YY, Z, -shear_z_bending_yy,
                      shear_z_bending_yy, -shear_z_bending_yy,
                      shear_z_bending_yy)

        return k
