from dataclasses import dataclass


@dataclass(eq=False)
class CrossSection:
    r"""Create the cross-section of a line element.

    Parameters
    ----------
    area : :any:`float`
        Cross-sectional area :math:`A`.
    mom_of_int_yy : :any:`float`
        Second moment of area about the local y-axis :math:`I_{yy}`.
        Governs bending about y and shear in z.
    mom_of_int_zz : :any:`float`
        Second moment of area about the local z-axis :math:`I_{zz}`.
        Governs bending about z and shear in y.
    torsion_const : :any:`float`
        Torsion constant :math:`J`.

    Raises
    ------
    ValueError
        Every property has to be greater than zero.
    """

    area: float
    mom_of_int_yy: float
    mom_of_int_zz: float
    torsion_const: float

    def __post_init__(self):
        for name in ('area', 'mom_of_int_yy', 'mom_of_int_zz',
                     'torsion_const'):
            if getattr(self, name) <= 0:
                raise ValueError(f'{name} has to be greater than zero.')

    @classmethod
    def rectangle(cls, height: float, width: float) -> 'CrossSection':
        r"""Properties of a solid rectangle.

        :py:attr:`height` is measured along the local z-axis and
        :py:attr:`width` along the local y-axis.

        Notes
        -----
        With :math:`a` the longer and :math:`b` the shorter side

        .. math::
            J = a b^3 \left(\frac{1}{3} - 0.21 \frac{b}{a}
            \left(1 - \frac{b^4}{12 a^4}\right)\right)

        Raises
        ------
        ValueError
            :py:attr:`height` or :py:attr:`width` is not greater than zero.
        """
        if height <= 0 or width <= 0:
            raise ValueError('height and width have to be greater than zero.')
        a, b = max(height, width), min(height, width)
        torsion_const = a * b ** 3 * (
            1 / 3 - 0.21 * b / a * (1 - b ** 4 / (12 * a ** 4))
        )
        return cls(
            area=height * width,
            mom_of_int_yy=width * height ** 3 / 12,
            mom_of_int_zz=height * width ** 3 / 12,
            torsion_const=torsion_const,
        )
