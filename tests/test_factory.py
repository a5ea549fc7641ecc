import tempfile
import unittest
import warnings
from pathlib import Path

import astropy.units as u
import numpy as np

from stellarforge.base import Barycenter, DwarfStar, Star
from stellarforge.exceptions import UnsupportedTopology, UnsupportedTopologyWarning
from stellarforge.generation import SystemFactory
from stellarforge.generation.tables import TABLE_SCHEMAS, table_path


def masses(system):
    return [body.mass.to_value(u.kg) for body in system.bodies]


class TestGenerateSystem(unittest.TestCase):
    def test_test_mode_gives_binaries(self):
        for seed in range(10):
            factory = SystemFactory(test_mode=True, seed=seed)
            system = factory.generate_system(star_count=5)
            self.assertEqual(len(system.bodies), 2)
            self.assertEqual(len(system.orbits), 1)
            orbit = system.orbits[0]
            self.assertIs(orbit.main_body, system.bodies[0])
            self.assertIs(orbit.body, system.bodies[1])
            self.assertTrue(system.frozen)

    def test_seed_reproducibility(self):
        first = SystemFactory(seed=42).generate_system()
        second = SystemFactory(seed=42).generate_system()
        self.assertEqual(masses(first), masses(second))
        self.assertEqual(
            [orbit.eccentricity for orbit in first.orbits],
            [orbit.eccentricity for orbit in second.orbits],
        )
        self.assertEqual(first.abundance, second.abundance)

    def test_explicit_generator(self):
        factory = SystemFactory(seed=0)
        first = factory.generate_system(3, rng=np.random.default_rng(5))
        second = factory.generate_system(3, rng=np.random.default_rng(5))
        self.assertEqual(masses(first), masses(second))
        self.assertNotEqual(first.name, second.name)

    def test_bodies_sorted_and_named(self):
        factory = SystemFactory(seed=11)
        system = factory.generate_system(5)
        self.assertEqual(system.name, "SF-0001")
        values = masses(system)
        self.assertEqual(values, sorted(values, reverse=True))
        self.assertEqual(
            [body.name for body in system.bodies],
            [f"SF-0001 {letter}" for letter in "ABCDE"],
        )
        for body in system.bodies:
            self.assertIsInstance(body, Star)

    def test_single_star(self):
        system = SystemFactory(seed=3).generate_system(1, name="Lonely")
        self.assertEqual(len(system.bodies), 1)
        self.assertEqual(len(system.orbits), 0)
        self.assertEqual(system.bodies[0].name, "Lonely A")
        self.assertTrue(system.bodies[0].is_root)

    def test_missing_star_count_is_random(self):
        first = SystemFactory(seed=1).generate_system(None)
        second = SystemFactory(seed=1).generate_system(0)
        self.assertGreaterEqual(len(first.bodies), 1)
        self.assertEqual(masses(first), masses(second))

    def test_random_size_bounds(self):
        factory = SystemFactory(seed=8, max_stars=3)
        sizes = {len(factory.generate_system().bodies) for _ in range(40)}
        self.assertTrue(sizes <= {1, 2, 3})
        self.assertIn(1, sizes)

        factory = SystemFactory(seed=8, max_stars=1)
        for _ in range(10):
            self.assertEqual(len(factory.generate_system().bodies), 1)

    def test_hierarchical_quadruple(self):
        factory = SystemFactory(seed=21, stability_factor=3.0)
        system = factory.generate_system(4)
        self.assertEqual(len(system.orbits), 3)
        self.assertEqual(len(system.barycenters), 2)

        inner, middle, outer = system.orbits
        self.assertIs(inner.main_body, system.bodies[0])
        for orbit, k in [(middle, 2), (outer, 3)]:
            self.assertIsInstance(orbit.main_body, Barycenter)
            self.assertIs(orbit.body, system.bodies[k])
            self.assertAlmostEqual(
                orbit.main_body.mass.to_value(u.kg),
                sum(masses(system)[:k]),
                delta=1e-9 * sum(masses(system)[:k]),
            )
        self.assertEqual(system.barycenters[0].name, "SF-0001 AB")
        self.assertEqual(system.barycenters[1].name, "SF-0001 ABC")

        for inside, outside in [(inner, middle), (middle, outer)]:
            self.assertGreaterEqual(
                outside.periapsis.to_value(u.m),
                3.0 * inside.apoapsis.to_value(u.m) * (1 - 1e-9),
            )
        system.validate_hierarchy()

    def test_binary_topology_leaves_larger_systems_unlinked(self):
        factory = SystemFactory(seed=2, topology="binary")
        with self.assertWarns(UnsupportedTopologyWarning):
            system = factory.generate_system(3)
        self.assertEqual(len(system.bodies), 3)
        self.assertEqual(len(system.orbits), 0)
        self.assertIsInstance(system.topology_error, UnsupportedTopology)
        self.assertEqual(system.topology_error.n_bodies, 3)
        self.assertTrue(system.frozen)

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            binary = factory.generate_system(2)
        self.assertEqual(len(binary.orbits), 1)
        self.assertIsNone(binary.topology_error)

    def test_age_and_abundance(self):
        factory = SystemFactory(seed=13)
        for _ in range(20):
            system = factory.generate_system()
            stars = [
                body.age
                for body in system.bodies
                if not isinstance(body, DwarfStar)
            ]
            ages = stars if stars else [body.age for body in system.bodies]
            self.assertEqual(system.age, min(ages))
            roll = system.abundance - int(np.floor(system.age))
            self.assertGreaterEqual(roll, 1)
            self.assertLessEqual(roll, 19)
            self.assertIn(system.abundance_modifier, (2, 1, 0, -1, -3))

    def test_generated_system_advances(self):
        system = SystemFactory(seed=4).generate_system(3)
        system.advance_time(1 * u.yr)
        for orbit in system.orbits:
            self.assertTrue(orbit.converged)
            self.assertAlmostEqual(orbit.elapsed_time.to_value(u.yr), 1.0)
        positions = system.body_positions()
        self.assertEqual(set(positions), {node.name for node in system.nodes})

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            SystemFactory(topology="ring")
        with self.assertRaises(ValueError):
            SystemFactory(max_stars=0)
        with self.assertRaises(ValueError):
            SystemFactory(stability_factor=0.0)
        factory = SystemFactory(seed=0)
        with self.assertRaises(ValueError):
            factory.generate_stellar_collection(factory.rng, star_count=-1)


class TestCustomTables(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.data_path = Path(self._tmp.name)
        for name in TABLE_SCHEMAS:
            (self.data_path / f"{name}.csv").write_text(table_path(name).read_text())
        (self.data_path / "star_generation.csv").write_text(
            "weight,kind,companion_chance\n1,brown_dwarf,0.5\n"
        )
        (self.data_path / "brown_dwarf.csv").write_text(
            "weight,mass_min,mass_max,eccentricity_min,eccentricity_max,"
            "semi_major_axis_min,semi_major_axis_max\n"
            "1,0.02,0.05,0.1,0.2,1.0,2.0\n"
        )

    def tearDown(self):
        self._tmp.cleanup()

    def test_dwarfs_use_their_own_orbit_ranges(self):
        factory = SystemFactory(seed=6, data_path=self.data_path)
        for _ in range(10):
            system = factory.generate_system(2)
            for body in system.bodies:
                self.assertIsInstance(body, DwarfStar)
                self.assertEqual(body.kind, "brown")
                self.assertEqual(body.spectral_type, "BD")
            orbit = system.orbits[0]
            self.assertGreaterEqual(orbit.eccentricity, 0.1)
            self.assertLessEqual(orbit.eccentricity, 0.2)
            a = orbit.semi_major_axis.to_value(u.AU)
            self.assertGreaterEqual(a, 1.0 - 1e-9)
            self.assertLessEqual(a, 2.0 + 1e-9)


if __name__ == "__main__":
    unittest.main()
