from dataclasses import dataclass


@dataclass(eq=False)
class Material:
    r"""Create a linear elastic material.

    Parameters
    ----------
    young_mod : :any:`float`
        Young's modulus (:math:`E`), a measure of the material's stiffness.
    poisson : :any:`float`
        Poisson's ratio (:math:`\nu`), the negative ratio of transverse to
        axial strain.
    shear_mod : :any:`float`
        Shear modulus (:math:`G`), a measure of the material's response
        to shear stress.

    Raises
    ------
    ValueError
        :py:attr:`young_mod`, :py:attr:`poisson` and :py:attr:`shear_mod`
        have to be greater than zero.
    """

    young_mod: float
    poisson: float
    shear_mod: float

    def __post_init__(self):
        if self.young_mod <= 0:
            raise ValueError('young_mod has to be greater than zero.')
        if self.poisson <= 0:
            raise ValueError('poisson has to be greater than zero.')
        if self.shear_mod <= 0:
            raise ValueError('shear_mod has to be greater than zero.')

    @classmethod
    def isotropic(cls, young_mod: float, poisson: float) -> 'Material':
        r"""Create an isotropic material whose shear modulus follows from
        :math:`G = \dfrac{E}{2 (1 + \nu)}`.

        Examples
        --------
        >>> from sfem.core.material import Material
        >>> Material.isotropic(200e9, 0.25).shear_mod
        80000000000.0
        """
        return cls(young_mod, poisson, young_mod / (2 * (1 + poisson)))
