import tempfile
import unittest
from pathlib import Path

import numpy as np

from stellarforge.exceptions import MalformedTableData
from stellarforge.generation import SystemFactory, TableProvider, load_table
from stellarforge.generation.tables import TABLE_SCHEMAS, table_path


class TestPackagedTables(unittest.TestCase):
    def test_all_tables_load(self):
        provider = TableProvider()
        self.assertEqual(set(provider.tables), set(TABLE_SCHEMAS))
        for name, table in provider.tables.items():
            self.assertGreater(len(table), 0, msg=name)
            self.assertTrue((table["weight"] > 0).all(), msg=name)
        self.assertIn("star_generation", repr(provider))

    def test_pick_covers_every_kind(self):
        provider = TableProvider()
        rng = np.random.default_rng(3)
        kinds = {provider.pick("star_generation", rng)["kind"] for _ in range(300)}
        self.assertEqual(kinds, {"star", "white_dwarf", "brown_dwarf"})

    def test_unknown_table(self):
        with self.assertRaises(MalformedTableData):
            load_table("planet_generation")


class TestMalformedTables(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.data_path = Path(self._tmp.name)
        for name in TABLE_SCHEMAS:
            (self.data_path / f"{name}.csv").write_text(table_path(name).read_text())

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name, content):
        (self.data_path / f"{name}.csv").write_text(content)

    def assertMalformed(self, name):
        with self.assertRaises(MalformedTableData) as ctx:
            load_table(name, self.data_path)
        self.assertEqual(ctx.exception.table, name)
        return ctx.exception

    def test_copied_tables_load(self):
        provider = TableProvider(self.data_path)
        self.assertEqual(len(provider.tables), len(TABLE_SCHEMAS))

    def test_missing_file(self):
        (self.data_path / "system_age.csv").unlink()
        self.assertMalformed("system_age")

    def test_empty_file(self):
        self.write("system_age", "")
        self.assertMalformed("system_age")

    def test_header_only(self):
        self.write("system_age", "weight,age_min,age_max\n")
        self.assertMalformed("system_age")

    def test_missing_column(self):
        self.write("system_age", "weight,age_min\n1,2.0\n")
        err = self.assertMalformed("system_age")
        self.assertIn("age_max", str(err))

    def test_non_numeric_value(self):
        self.write("system_age", "weight,age_min,age_max\n1,old,3.0\n")
        self.assertMalformed("system_age")

    def test_non_positive_weight(self):
        self.write("system_age", "weight,age_min,age_max\n0,1.0,3.0\n")
        self.assertMalformed("system_age")

    def test_inverted_range(self):
        self.write(
            "basic_star", "weight,spectral_type,mass_min,mass_max\n1,G,1.2,0.8\n"
        )
        self.assertMalformed("basic_star")

    def test_companion_chance_out_of_range(self):
        self.write("star_generation", "weight,kind,companion_chance\n1,star,1.5\n")
        self.assertMalformed("star_generation")

    def test_unknown_kind(self):
        self.write(
            "star_generation", "weight,kind,companion_chance\n1,neutron_star,0.5\n"
        )
        self.assertMalformed("star_generation")

    def test_unbound_eccentricity(self):
        self.write(
            "companion_orbit",
            "weight,separation,eccentricity_min,eccentricity_max,"
            "semi_major_axis_min,semi_major_axis_max\n1,close,0.0,1.0,0.5,5.0\n",
        )
        self.assertMalformed("companion_orbit")

    def test_factory_fails_at_construction(self):
        self.write("white_dwarf", "weight,mass_min\n1,0.5\n")
        with self.assertRaises(MalformedTableData):
            SystemFactory(data_path=self.data_path)


if __name__ == "__main__":
    unittest.main()
