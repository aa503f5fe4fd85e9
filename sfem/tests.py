from itertools import product
from unittest import TestCase

import numpy as np
from numpy.testing import assert_allclose as numpy_allclose

from sfem.core.cache import Cache
from sfem.core.cross_section import CrossSection
from sfem.core.dof import (
    DegreeOfFreedom, ModelType, NodalDegreeOfFreedom, ROTATIONS, TRANSLATIONS,
    allowed_degrees_of_freedom_for_boundary_conditions
)
from sfem.core.element import Linear3DBeam, LinearTruss
from sfem.core.keyed import KeyedSquareMatrix, KeyedVector
from sfem.core.loads import ForceVector
from sfem.core.material import Material
from sfem.core.model import FiniteElementModel
from sfem.core.node import Node
from sfem.core.stiffness import (
    Linear3DBernoulliBeamStiffnessMatrixBuilder,
    LinearTrussStiffnessMatrixBuilder, NonSingularMatrixError
)
from sfem.core.stiffness_matrix import StiffnessMatrix

X, Y, Z = DegreeOfFreedom.X, DegreeOfFreedom.Y, DegreeOfFreedom.Z
XX, YY, ZZ = DegreeOfFreedom.XX, DegreeOfFreedom.YY, DegreeOfFreedom.ZZ


def assert_allclose(actual, desired, err_msg=''):
    numpy_allclose(actual, desired, err_msg=err_msg, atol=1e-10, rtol=1e-7)


def steel():
    return Material(young_mod=200e9, poisson=0.25, shear_mod=80e9)


def section():
    return CrossSection(area=0.01, mom_of_int_yy=1e-6, mom_of_int_zz=1e-6,
                        torsion_const=2e-6)


def cantilever():
    start = Node(0, 0, 0, label='start')
    end = Node(2, 0, 0, label='end')
    return start, end, Linear3DBeam(start, end, steel(), section())


class CountingBeamStiffness(Linear3DBernoulliBeamStiffnessMatrixBuilder):

    def __init__(self, element, debug=False):
        super().__init__(element, debug=debug)
        self.calls = 0

    def local_stiffness_matrix(self):
        self.calls += 1
        return super().local_stiffness_matrix()


class RegularStiffness(Linear3DBernoulliBeamStiffnessMatrixBuilder):

    def local_stiffness_matrix(self):
        keys = self.element.supported_nodal_degrees_of_freedom
        return StiffnessMatrix(keys, np.eye(len(keys)))


class TestDegreeOfFreedom(TestCase):

    def test_translations_and_rotations(self):
        self.assertEqual(TRANSLATIONS, (X, Y, Z))
        self.assertEqual(ROTATIONS, (XX, YY, ZZ))
        for dof in TRANSLATIONS:
            self.assertTrue(dof.is_translation)
            self.assertFalse(dof.is_rotation)
        for dof in ROTATIONS:
            self.assertTrue(dof.is_rotation)
            self.assertFalse(dof.is_translation)

    def test_nodal_degree_of_freedom_equality(self):
        node = Node(0, 0, 0)
        twin = Node(0, 0, 0)
        self.assertEqual(
            NodalDegreeOfFreedom(node, X), NodalDegreeOfFreedom(node, X),
            msg='Keys of the same node and DOF must be equal.'
        )
        self.assertEqual(hash(NodalDegreeOfFreedom(node, X)),
                         hash(NodalDegreeOfFreedom(node, X)))
        self.assertNotEqual(
            NodalDegreeOfFreedom(node, X), NodalDegreeOfFreedom(twin, X),
            msg='Nodes compare by identity, not by location.'
        )
        self.assertNotEqual(NodalDegreeOfFreedom(node, X),
                            NodalDegreeOfFreedom(node, Y))

    def test_nodal_degree_of_freedom_validation(self):
        with self.assertRaises(ValueError):
            NodalDegreeOfFreedom(None, X)
        with self.assertRaises(ValueError):
            NodalDegreeOfFreedom(Node(0, 0, 0), 'x')

    def test_allowed_degrees_of_freedom(self):
        self.assertEqual(
            allowed_degrees_of_freedom_for_boundary_conditions(
                ModelType.FULL_3D),
            (X, Y, Z, XX, YY, ZZ)
        )
        self.assertEqual(
            ModelType.TRUSS_2D
            .allowed_degrees_of_freedom_for_boundary_conditions(),
            (X, Z)
        )
        self.assertTrue(
            ModelType.FRAME_2D
            .is_allowed_degree_of_freedom_for_boundary_conditions(YY)
        )
        self.assertFalse(
            ModelType.FRAME_2D
            .is_allowed_degree_of_freedom_for_boundary_conditions(ZZ)
        )
        with self.assertRaises(ValueError):
            allowed_degrees_of_freedom_for_boundary_conditions('3d')


class TestKeyedVector(TestCase):

    def test_get_and_set(self):
        v = KeyedVector(['a', 'b', 'c'], 1.5)
        v['b'] = -2
        self.assertEqual(v['a'], 1.5)
        self.assertEqual(v['b'], -2)
        assert_allclose(v.to_array(), [1.5, -2, 1.5])
        self.assertEqual(list(v.items()), [('a', 1.5), ('b', -2), ('c', 1.5)])
        self.assertEqual(len(v), 3)

    def test_invalid_keys(self):
        with self.assertRaises(ValueError):
            KeyedVector(['a', 'a'])
        v = KeyedVector(['a'])
        with self.assertRaises(ValueError):
            v['b']
        with self.assertRaises(ValueError):
            v['b'] = 1.0
        with self.assertRaises(ValueError):
            KeyedVector.from_array(['a', 'b'], [1.0])


class TestKeyedSquareMatrix(TestCase):

    def test_get_set(self):
        m = KeyedSquareMatrix(['a', 'b'])
        m.set('a', 'b', 3.0)
        self.assertEqual(m.get('a', 'b'), 3.0)
        self.assertEqual(m.get('b', 'a'), 0.0)
        with self.assertRaises(ValueError):
            m.get('a', 'c')

    def test_shape_validation(self):
        with self.assertRaises(ValueError):
            KeyedSquareMatrix(['a', 'b'], np.eye(3))
        with self.assertRaises(ValueError):
            KeyedSquareMatrix(['a', 'b', 'a'])

    def test_multiply_transpose(self):
        a = KeyedSquareMatrix(['a', 'b'], [[1, 2], [3, 4]])
        b = KeyedSquareMatrix(['a', 'b'], [[0, 1], [1, 0]])
        assert_allclose(a.multiply(b).to_array(), [[2, 1], [4, 3]])
        assert_allclose((a @ b).to_array(), [[2, 1], [4, 3]])
        assert_allclose(a.transpose().to_array(), [[1, 3], [2, 4]])
        v = KeyedVector.from_array(['a', 'b'], [1, 1])
        product_ = a.multiply(v)
        self.assertIsInstance(product_, KeyedVector)
        self.assertEqual(product_['b'], 7)

    def test_multiply_requires_identical_keys(self):
        a = KeyedSquareMatrix(['a', 'b'])
        with self.assertRaises(ValueError):
            a.multiply(KeyedSquareMatrix(['b', 'a']))
        with self.assertRaises(ValueError):
            a.multiply(KeyedVector(['a', 'c']))

    def test_determinant_and_singularity(self):
        regular = KeyedSquareMatrix(['a', 'b'], [[2, 1], [1, 2]])
        self.assertAlmostEqual(regular.determinant(), 3.0)
        self.assertFalse(regular.is_singular())
        singular = KeyedSquareMatrix(['a', 'b'], [[1, -1], [-1, 1]])
        self.assertEqual(singular.determinant(), 0.0)
        self.assertTrue(singular.is_singular())
        self.assertTrue(singular.is_singular(rtol=1e-10))
        self.assertEqual(singular.rank(), 1)
        self.assertTrue(KeyedSquareMatrix(['a']).is_singular())

    def test_singularity_is_scale_independent(self):
        scaled = KeyedSquareMatrix(['a', 'b'], 1e9 * np.array(
            [[1, -1], [-1, 1 + 1e-15]]
        ))
        self.assertTrue(
            scaled.is_singular(rtol=1e-10),
            msg='Round-off relative to the matrix norm must count as zero.'
        )

    def test_freeze(self):
        m = KeyedSquareMatrix(['a'])
        self.assertIs(m.freeze(), m)
        self.assertTrue(m.frozen)
        with self.assertRaises(ValueError):
            m.set('a', 'a', 1.0)
        copy = m.to_array()
        copy[0, 0] = 5.0
        self.assertEqual(m.get('a', 'a'), 0.0)

    def test_submatrix_and_equality(self):
        m = KeyedSquareMatrix(['a', 'b', 'c'], np.arange(9).reshape(3, 3))
        assert_allclose(m.submatrix(['c'], ['a', 'b']), [[6, 7]])
        self.assertEqual(m, KeyedSquareMatrix(['a', 'b', 'c'],
                                              np.arange(9).reshape(3, 3)))
        self.assertNotEqual(m, m.transpose())
        self.assertTrue(KeyedSquareMatrix(['a', 'b'], [[1, 2], [2, 1]])
                        .is_symmetric())
        self.assertFalse(m.is_symmetric())


class TestStiffnessMatrix(TestCase):

    def test_set_corners(self):
        a, b = Node(0, 0, 0), Node(1, 0, 0)
        k = StiffnessMatrix([NodalDegreeOfFreedom(a, X),
                             NodalDegreeOfFreedom(a, ZZ),
                             NodalDegreeOfFreedom(b, X),
                             NodalDegreeOfFreedom(b, ZZ)])
        k.set_corners(a, b, X, ZZ, 1, 2, 3, 4)
        self.assertEqual(k.at(a, X, a, ZZ), 1)
        self.assertEqual(k.at(a, X, b, ZZ), 2)
        self.assertEqual(k.at(b, X, a, ZZ), 3)
        self.assertEqual(k.at(b, X, b, ZZ), 4)
        self.assertEqual(k.at(a, ZZ, a, X), 0,
                         msg='set_corners must not touch the mirrored block.')

    def test_invalid_access(self):
        a = Node(0, 0, 0)
        k = StiffnessMatrix([NodalDegreeOfFreedom(a, X)])
        with self.assertRaises(ValueError):
            k.at(a, Y, a, X)
        with self.assertRaises(ValueError):
            k.at(Node(0, 0, 0), X, a, X)
        with self.assertRaises(ValueError):
            StiffnessMatrix(['a'])

    def test_from_keyed(self):
        a = Node(0, 0, 0)
        keyed = KeyedSquareMatrix([NodalDegreeOfFreedom(a, X)], [[4.0]])
        k = StiffnessMatrix.from_keyed(keyed)
        self.assertIsInstance(k, StiffnessMatrix)
        self.assertEqual(k.at(a, X, a, X), 4.0)


class TestCache(TestCase):

    def test_token_semantics(self):
        cache = Cache()
        self.assertFalse(cache.contains_key('k'))
        self.assertEqual(cache.lookup('k', 1), (False, None))
        self.assertTrue(cache.save('k', 'value', 7))
        self.assertTrue(cache.contains_key('k'))
        self.assertIn('k', cache)
        self.assertEqual(cache.lookup('k', 7), (True, 'value'))
        self.assertEqual(
            cache.lookup('k', 8), (False, 'value'),
            msg='A stale entry is a miss but still returns its value.'
        )

    def test_save_replaces_value_and_token(self):
        cache = Cache()
        cache.save('k', 'old', 1)
        cache.save('k', 'new', 2)
        self.assertEqual(cache.lookup('k', 2), (True, 'new'))
        self.assertEqual(cache.lookup('k', 1), (False, 'new'))
        self.assertEqual(len(cache), 1)

    def test_hit_iff_tokens_equal(self):
        for saved, expected in product(range(-2, 3), repeat=2):
            cache = Cache()
            cache.save('k', 0, saved)
            hit, _ = cache.lookup('k', expected)
            self.assertEqual(hit, saved == expected)


class TestValueObjects(TestCase):

    def test_material_validation(self):
        for args in ((0, 0.3, 1), (1, 0, 1), (1, 0.3, -1)):
            with self.assertRaises(ValueError):
                Material(*args)

    def test_isotropic_material(self):
        self.assertAlmostEqual(Material.isotropic(200e9, 0.25).shear_mod,
                               80e9)

    def test_cross_section_validation(self):
        for args in ((0, 1, 1, 1), (1, 0, 1, 1), (1, 1, -1, 1), (1, 1, 1, 0)):
            with self.assertRaises(ValueError):
                CrossSection(*args)

    def test_rectangle(self):
        cs = CrossSection.rectangle(height=0.4, width=0.2)
        self.assertAlmostEqual(cs.area, 0.08)
        self.assertAlmostEqual(cs.mom_of_int_yy, 0.2 * 0.4 ** 3 / 12)
        self.assertAlmostEqual(cs.mom_of_int_zz, 0.4 * 0.2 ** 3 / 12)
        # a/b = 2: J ~ 0.229 a b^3
        self.assertAlmostEqual(cs.torsion_const / (0.4 * 0.2 ** 3), 0.2289,
                               places=3)
        with self.assertRaises(ValueError):
            CrossSection.rectangle(0, 1)

    def test_force_vector(self):
        f = ForceVector(x=1, zz=2) + ForceVector(x=3, y=-1)
        self.assertEqual(f.value(X), 4)
        self.assertEqual(f.value(Y), -1)
        self.assertEqual(f.value(ZZ), 2)
        assert_allclose(f.vector, [4, -1, 0, 0, 0, 2])
        assert_allclose(ForceVector.zero().vector, np.zeros(6))

    def test_node(self):
        a, b = Node(0, 0, 0), Node(3, 4, 0, label='b')
        self.assertAlmostEqual(a.distance_to(b), 5)
        self.assertTrue(a.same_location(Node(0, 0, 0)))
        self.assertNotEqual(a, Node(0, 0, 0))
        self.assertEqual(b.name, 'b')
        self.assertEqual(a.name, '(0, 0, 0)')


class TestLinear3DBeam(TestCase):

    def test_validation(self):
        a, b = Node(0, 0, 0), Node(1, 0, 0)
        with self.assertRaises(ValueError):
            Linear3DBeam(a, Node(0, 0, 0), steel(), section())
        with self.assertRaises(ValueError):
            Linear3DBeam(a, a, steel(), section())
        with self.assertRaises(ValueError):
            Linear3DBeam(None, b, steel(), section())
        with self.assertRaises(ValueError):
            Linear3DBeam(a, b, None, section())
        with self.assertRaises(ValueError):
            Linear3DBeam(a, b, steel(), None)
        with self.assertRaises(ValueError):
            Linear3DBeam(a, b, steel(), section(), reference_vector=(0, 0, 0))

    def test_supported_degrees_of_freedom(self):
        start, end, beam = cantilever()
        keys = beam.supported_nodal_degrees_of_freedom
        self.assertEqual(len(keys), 12)
        self.assertEqual(keys[0], NodalDegreeOfFreedom(start, X))
        self.assertEqual(keys[6], NodalDegreeOfFreedom(end, X))
        self.assertEqual(keys[-1], NodalDegreeOfFreedom(end, ZZ))
        self.assertAlmostEqual(beam.original_length, 2.0)
        self.assertTrue(beam.has_node(start))
        self.assertFalse(beam.has_node(Node(0, 0, 0)))

    def test_version(self):
        start, end, beam = cantilever()
        v1 = beam.version
        self.assertEqual(beam.version, v1,
                         msg='An unchanged element must keep its version.')
        end.x = 3.0
        v2 = beam.version
        self.assertNotEqual(v2, v1)
        beam.material = Material(210e9, 0.3, 81e9)
        v3 = beam.version
        self.assertNotEqual(v3, v2)
        beam.cross_section.area = 0.02
        self.assertNotEqual(beam.version, v3)
        v4 = beam.version
        beam.reference_vector = (0, 1, 0)
        self.assertNotEqual(beam.version, v4)

    def test_rotation_matrix_aligned(self):
        _, _, beam = cantilever()
        assert_allclose(beam.rotation_matrix(), np.eye(3),
                        err_msg='A beam along global X has no rotation.')

    def test_rotation_matrix_orthonormal(self):
        beam = Linear3DBeam(Node(1, 2, 3), Node(4, -2, 5), steel(), section())
        r = beam.rotation_matrix()
        assert_allclose(r @ r.T, np.eye(3))
        self.assertAlmostEqual(np.linalg.det(r), 1.0)
        assert_allclose(r[0], np.array([3, -4, 2]) / np.sqrt(29))

    def test_rotation_matrix_parallel_reference(self):
        beam = Linear3DBeam(Node(0, 0, 0), Node(0, 0, 5), steel(), section())
        r = beam.rotation_matrix()
        assert_allclose(r[0], [0, 0, 1])
        assert_allclose(r @ r.T, np.eye(3),
                        err_msg='A vertical beam must fall back to another '
                                'reference vector.')

    def test_builder_is_owned(self):
        _, _, beam = cantilever()
        builder = beam.stiffness_builder
        self.assertIsInstance(builder,
                              Linear3DBernoulliBeamStiffnessMatrixBuilder)
        self.assertIs(beam.stiffness_builder, builder)
        self.assertIs(builder.element, beam)


class TestLinear3DBernoulliBeamStiffnessMatrixBuilder(TestCase):

    def test_end_to_end_cantilever(self):
        start, end, beam = cantilever()
        model = FiniteElementModel(ModelType.FULL_3D)
        model.add_element(beam)
        for dof in model.allowed_degrees_of_freedom_for_boundary_conditions():
            model.constrain_node(start, dof)

        builder = beam.stiffness_builder
        self.assertAlmostEqual(
            builder.get_stiffness_in_global_coordinates_at(end, X, end, X),
            1e9, delta=1e-3
        )
        self.assertAlmostEqual(
            builder.get_stiffness_in_global_coordinates_at(end, Y, end, Y),
            3e5, delta=1e-6
        )
        local = builder.local_stiffness_matrix()
        k_global = builder.stiffness_matrix_in_global_coordinates
        np.testing.assert_array_equal(
            k_global.to_array(), local.to_array(),
            err_msg='With identity rotation local and global matrices must '
                    'be identical.'
        )
        self.assertEqual(k_global.keys, local.keys)
        self.assertTrue(local.is_singular(builder.singularity_rtol))
        self.assertTrue(k_global.is_singular(builder.singularity_rtol))
        self.assertEqual(
            len(model.degrees_of_freedom_with_known_displacement), 6)
        self.assertEqual(len(model.degrees_of_freedom_with_known_force), 6)

    def test_local_stiffness_terms(self):
        start, end, beam = cantilever()
        k = beam.stiffness_builder.local_stiffness_matrix()
        e, g, length = 200e9, 80e9, 2.0
        ei = e * 1e-6
        self.assertAlmostEqual(k.at(start, X, end, X), -1e9, delta=1e-3)
        self.assertAlmostEqual(k.at(start, Z, start, Z), 12 * ei / 8)
        self.assertAlmostEqual(k.at(end, XX, end, XX), g * 2e-6 / length)
        self.assertAlmostEqual(k.at(start, XX, end, XX), -g * 2e-6 / length)
        self.assertAlmostEqual(k.at(start, YY, start, YY), 4 * ei / length)
        self.assertAlmostEqual(k.at(start, ZZ, end, ZZ), 2 * ei / length)
        c = 6 * ei / length ** 2
        self.assertAlmostEqual(k.at(start, Y, start, ZZ), c)
        self.assertAlmostEqual(k.at(start, Y, end, ZZ), c)
        self.assertAlmostEqual(k.at(end, Y, start, ZZ), -c)
        self.assertAlmostEqual(k.at(start, Z, start, YY), -c)
        self.assertAlmostEqual(k.at(end, Z, end, YY), c)
        self.assertEqual(k.at(start, X, start, Y), 0)
        self.assertEqual(k.at(start, XX, start, YY), 0)

    def test_symmetry_and_rank(self):
        beam = Linear3DBeam(Node(1, 2, 3), Node(4, -2, 5), steel(), section())
        builder = beam.stiffness_builder
        for k in (builder.local_stiffness_matrix(),
                  builder.stiffness_matrix_in_global_coordinates):
            assert_allclose(k.to_array(), k.to_array().T,
                            err_msg='Stiffness matrices must be symmetric.')
            self.assertEqual(
                k.rank(builder.singularity_rtol), 6,
                msg='A free beam has six rigid body modes.'
            )

    def test_rotated_beam(self):
        start, end = Node(0, 0, 0), Node(0, 2, 0)
        beam = Linear3DBeam(start, end, steel(), section())
        builder = beam.stiffness_builder
        assert_allclose(beam.rotation_matrix(),
                        [[0, 1, 0], [-1, 0, 0], [0, 0, 1]])
        self.assertAlmostEqual(
            builder.get_stiffness_in_global_coordinates_at(end, Y, end, Y),
            1e9, delta=1e-3, msg='The axial stiffness must turn into Y.'
        )
        self.assertAlmostEqual(
            builder.get_stiffness_in_global_coordinates_at(end, X, end, X),
            3e5, delta=1e-6
        )
        self.assertTrue(
            builder.stiffness_matrix_in_global_coordinates.is_singular(
                builder.singularity_rtol)
        )

    def test_rotation_matrix_blocks(self):
        start, end = Node(0, 0, 0), Node(0, 2, 0)
        beam = Linear3DBeam(start, end, steel(), section())
        t = beam.stiffness_builder.rotation_matrix_from_local_to_global()
        self.assertEqual(t.keys, tuple(beam.supported_nodal_degrees_of_freedom))
        block = t.submatrix(
            [NodalDegreeOfFreedom(end, d) for d in TRANSLATIONS + ROTATIONS],
            [NodalDegreeOfFreedom(end, d) for d in TRANSLATIONS + ROTATIONS],
        )
        expected = np.zeros((6, 6))
        expected[:3, :3] = beam.rotation_matrix()
        expected[3:, 3:] = np.eye(3)
        assert_allclose(block, expected)
        assert_allclose(
            t.submatrix([NodalDegreeOfFreedom(start, X)],
                        [NodalDegreeOfFreedom(end, Y)]),
            [[0]], err_msg='Different nodes must not be coupled.'
        )

    def test_cache_coherence(self):
        start, end, beam = cantilever()
        builder = CountingBeamStiffness(beam)
        first = builder.stiffness_matrix_in_global_coordinates
        second = builder.stiffness_matrix_in_global_coordinates
        self.assertIs(first, second)
        self.assertEqual(builder.calls, 1,
                         msg='Without mutation the formulation runs once.')

        end.x = 4.0
        third = builder.stiffness_matrix_in_global_coordinates
        self.assertEqual(builder.calls, 2)
        self.assertAlmostEqual(third.at(end, X, end, X), 5e8, delta=1e-3)
        self.assertAlmostEqual(first.at(end, X, end, X), 1e9, delta=1e-3,
                               msg='Previously returned matrices stay valid.')

    def test_global_matrix_is_read_only(self):
        start, end, beam = cantilever()
        k = beam.stiffness_matrix_in_global_coordinates
        with self.assertRaises(ValueError):
            k.set_at(end, X, end, X, 0.0)

    def test_get_stiffness_invalid_arguments(self):
        start, end, beam = cantilever()
        builder = beam.stiffness_builder
        with self.assertRaises(ValueError):
            builder.get_stiffness_in_global_coordinates_at(None, X, end, X)
        with self.assertRaises(ValueError):
            builder.get_stiffness_in_global_coordinates_at(start, X, None, X)
        with self.assertRaises(ValueError):
            builder.get_stiffness_in_global_coordinates_at(
                Node(0, 0, 0), X, end, X)

    def test_builder_requires_element(self):
        with self.assertRaises(ValueError):
            Linear3DBernoulliBeamStiffnessMatrixBuilder(None)

    def test_non_singular_local_matrix(self):
        _, _, beam = cantilever()
        builder = RegularStiffness(beam)
        with self.assertLogs(builder.logger, level='ERROR'):
            with self.assertRaises(NonSingularMatrixError) as cm:
                builder.stiffness_matrix_in_global_coordinates
        self.assertIs(cm.exception.element, beam)
        self.assertEqual(cm.exception.formulation, 'RegularStiffness')
        self.assertEqual(cm.exception.stage, 'local')
        self.assertIn('RegularStiffness', str(cm.exception))
        self.assertIn('Linear3DBeam', str(cm.exception))

    def test_failed_rebuild_keeps_last_good_matrix(self):
        start, end, beam = cantilever()
        builder = CountingBeamStiffness(beam)
        good = builder.stiffness_matrix_in_global_coordinates

        builder.singularity_rtol = -1.0
        end.x = 3.0
        with self.assertRaises(NonSingularMatrixError):
            builder.stiffness_matrix_in_global_coordinates

        builder.singularity_rtol = 1e-10
        end.x = 2.0
        self.assertIs(builder.stiffness_matrix_in_global_coordinates, good)
        self.assertEqual(builder.calls, 2)

    def test_debug_logging(self):
        _, _, beam = cantilever()
        builder = beam.stiffness_builder
        with self.assertLogs(builder.logger, level='DEBUG') as logs:
            builder.stiffness_matrix_in_global_coordinates
            builder.stiffness_matrix_in_global_coordinates
        output = '\n'.join(logs.output)
        self.assertIn('Local stiffness matrix', output)
        self.assertIn('start:X', output)
        self.assertIn('using cached matrix', output)

    def test_error_message_global_stage(self):
        _, _, beam = cantilever()
        error = NonSingularMatrixError(beam, 'SomeBuilder', 'global')
        self.assertTrue(str(error).startswith('The global stiffness matrix'))
        self.assertIsInstance(error, RuntimeError)


class TestLinearTrussStiffnessMatrixBuilder(TestCase):

    def test_local_matrix(self):
        a, b = Node(0, 0, 0), Node(2, 0, 0)
        truss = LinearTruss(a, b, steel(), section())
        builder = truss.stiffness_builder
        self.assertIsInstance(builder, LinearTrussStiffnessMatrixBuilder)
        k = builder.local_stiffness_matrix()
        self.assertEqual(k.shape, (6, 6))
        self.assertAlmostEqual(k.at(a, X, b, X), -1e9, delta=1e-3)
        self.assertEqual(k.at(a, Y, a, Y), 0)
        self.assertEqual(builder.stiffness_matrix_in_global_coordinates.rank(
            builder.singularity_rtol), 1)

    def test_global_matrix_direction_cosines(self):
        a, b = Node(0, 0, 0), Node(1, 2, 2)
        truss = LinearTruss(a, b, steel(), section())
        k = truss.stiffness_matrix_in_global_coordinates
        cosines = np.array([1, 2, 2]) / 3
        b_block = np.outer(cosines, cosines)
        expected = 0.01 * 200e9 / 3 * np.block([[b_block, -b_block],
                                                [-b_block, b_block]])
        assert_allclose(k.to_array() / 1e9, expected / 1e9,
                        err_msg='The rotated truss matrix must equal '
                                'EA/L [B -B; -B B].')

    def test_no_rotational_degrees_of_freedom(self):
        a, b = Node(0, 0, 0), Node(2, 0, 0)
        truss = LinearTruss(a, b, steel(), section())
        t = truss.stiffness_builder.rotation_matrix_from_local_to_global()
        self.assertEqual(len(t), 6)
        with self.assertRaises(ValueError):
            truss.stiffness_builder.get_stiffness_in_global_coordinates_at(
                a, XX, a, XX)


class TestFiniteElementModel(TestCase):

    def setUp(self):
        self.n1 = Node(0, 0, 0, label='n1')
        self.n2 = Node(1, 0, 0, label='n2')
        self.n3 = Node(2, 0, 0, label='n3')
        self.model = FiniteElementModel(ModelType.TRUSS_2D)
        self.t1 = self.model.add_element(
            LinearTruss(self.n1, self.n2, steel(), section()))
        self.t2 = self.model.add_element(
            LinearTruss(self.n2, self.n3, steel(), section()))

    def test_counts(self):
        self.assertEqual(self.model.node_count, 3)
        self.assertEqual(self.model.element_count, 2)
        self.model.add_element(self.t1)
        self.model.add_node(self.n1)
        self.assertEqual(self.model.node_count, 3)
        self.assertEqual(self.model.element_count, 2)
        self.assertEqual(self.model.nodes, [self.n1, self.n2, self.n3])

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            FiniteElementModel('truss')
        with self.assertRaises(ValueError):
            self.model.add_node(None)
        with self.assertRaises(ValueError):
            self.model.add_element(None)
        with self.assertRaises(ValueError):
            self.model.constrain_node(Node(5, 5, 5), X)
        with self.assertRaises(ValueError):
            self.model.apply_force_to_node(ForceVector(x=1), Node(5, 5, 5))

    def test_all_degrees_of_freedom_order(self):
        expected = [NodalDegreeOfFreedom(n, d)
                    for n in (self.n1, self.n2, self.n3) for d in (X, Z)]
        self.assertEqual(self.model.all_degrees_of_freedom, expected)

    def test_disallowed_constraint(self):
        with self.assertLogs(self.model.logger, level='WARNING'):
            with self.assertRaises(ValueError):
                self.model.constrain_node(self.n1, Y)
        self.assertFalse(self.model.is_constrained(self.n1, Y))
        self.assertEqual(
            self.model.degrees_of_freedom_with_known_displacement, [],
            msg='A rejected constraint must not change the model.'
        )

    def test_partition_completeness(self):
        dofs = self.model.all_degrees_of_freedom
        for mask in product((False, True), repeat=len(dofs)):
            model = FiniteElementModel(ModelType.TRUSS_2D)
            model.add_element(self.t1)
            model.add_element(self.t2)
            for key, constrained in zip(dofs, mask):
                if constrained:
                    model.constrain_node(key.node, key.dof)
            known_force = model.degrees_of_freedom_with_known_force
            known_disp = model.degrees_of_freedom_with_known_displacement
            self.assertFalse(set(known_force) & set(known_disp))
            self.assertEqual(set(known_force) | set(known_disp), set(dofs))
            self.assertEqual(
                known_disp,
                [key for key, c in zip(dofs, mask) if c],
                msg='Partitions must keep the order of all DOFs.'
            )
            self.assertEqual(known_force,
                             model.degrees_of_freedom_with_unknown_displacement)
            self.assertEqual(known_disp,
                             model.degrees_of_freedom_with_unknown_force)

    def test_unconstrain(self):
        self.model.constrain_node(self.n1, X)
        self.assertTrue(self.model.is_constrained(self.n1, X))
        self.model.unconstrain_node(self.n1, X)
        self.assertFalse(self.model.is_constrained(self.n1, X))
        self.assertEqual(len(self.model.degrees_of_freedom_with_known_force),
                         6)

    def test_known_force_vector(self):
        self.model.constrain_node(self.n1, X)
        self.model.constrain_node(self.n1, Z)
        self.model.apply_force_to_node(ForceVector(x=10, z=-5), self.n3)
        self.model.apply_force_to_node(ForceVector(z=-2, y=7), self.n3)
        self.model.apply_force_to_node(ForceVector(x=100), self.n1)
        forces = self.model.known_force_vector()
        self.assertEqual(list(forces.keys),
                         self.model.degrees_of_freedom_with_known_force)
        assert_allclose(forces.to_array(), [0, 0, 10, -7])
        self.assertEqual(forces[NodalDegreeOfFreedom(self.n3, Z)], -7)
        with self.assertRaises(ValueError):
            forces[NodalDegreeOfFreedom(self.n1, X)]

    def test_combined_forces_for(self):
        self.model.apply_force_to_node(ForceVector(zz=3), self.n2)
        self.model.apply_force_to_node(ForceVector(zz=4), self.n2)
        forces = self.model.get_combined_forces_for(
            [NodalDegreeOfFreedom(self.n2, ZZ),
             NodalDegreeOfFreedom(self.n1, ZZ)])
        assert_allclose(forces.to_array(), [7, 0])

    def test_known_displacement_vector(self):
        self.assertEqual(len(self.model.known_displacement_vector()), 0)
        self.model.constrain_node(self.n1, X)
        self.model.constrain_node(self.n3, Z)
        displacements = self.model.known_displacement_vector()
        self.assertEqual(
            list(displacements.keys),
            [NodalDegreeOfFreedom(self.n1, X),
             NodalDegreeOfFreedom(self.n3, Z)]
        )
        assert_allclose(displacements.to_array(), [0, 0])

    def test_connected_elements(self):
        self.assertEqual(self.model.get_all_elements_connected_to(self.n2),
                         [self.t1, self.t2])
        self.assertEqual(self.model.get_all_elements_connected_to(self.n1),
                         [self.t1])
        with self.assertRaises(ValueError):
            self.model.get_all_elements_connected_to(Node(9, 9, 9))
        with self.assertRaises(ValueError):
            self.model.get_all_elements_connected_to(None)
        self.assertEqual(
            self.model.get_all_elements_directly_connecting(self.n1, self.n2),
            [self.t1]
        )
        self.assertEqual(
            self.model.get_all_elements_directly_connecting(self.n1, self.n3),
            []
        )

    def test_stiffness_builders(self):
        builders = self.model.stiffness_builders()
        self.assertEqual([b.element for b in builders], [self.t1, self.t2])
        for builder in builders:
            self.assertTrue(
                builder.stiffness_matrix_in_global_coordinates.is_singular(
                    builder.singularity_rtol))

    def test_constraints_do_not_invalidate_element_cache(self):
        builder = CountingBeamStiffness(
            Linear3DBeam(self.n1, self.n2, steel(), section()))
        builder.stiffness_matrix_in_global_coordinates
        model = FiniteElementModel(ModelType.FULL_3D)
        model.add_element(builder.element)
        model.constrain_node(self.n1, XX)
        builder.stiffness_matrix_in_global_coordinates
        self.assertEqual(builder.calls, 1)
