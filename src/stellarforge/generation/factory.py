import logging

import astropy.units as u
import numpy as np
from astropy.time import Time

from stellarforge.base.orbit import J2000
from stellarforge.base.star import DwarfStar, Star
from stellarforge.base.system import StellarSystem
from stellarforge.generation.forge import TOPOLOGIES, assemble_orbits
from stellarforge.generation.tables import TableProvider
from stellarforge.util.misc import designation, roll_abundance, uniform_range

logger = logging.getLogger(__name__)


class SystemFactory:
    """
    Generates stellar systems from the weighted generation tables

    Args:
        test_mode (bool):
            Every system gets exactly two stars, whatever count is asked for
        seed (int):
            Seed of the factory's default random generator
        tables (TableProvider):
            Table source, loads the tables from data_path if None
        data_path (str or Path):
            Directory of the generation tables, the packaged ones if None
        epoch (astropy Time or str):
            Epoch of the generated orbits, J2000 if None
        topology (str):
            How three or more bodies are arranged, see assemble_orbits
        max_stars (int):
            Cap on the number of bodies of a system of random size
        stability_factor (float):
            Minimum ratio of an outer periapsis to the inner apoapsis
        strict_solver (bool):
            Whether Kepler solver failures raise or only warn
    """

    def __init__(
        self,
        test_mode=False,
        seed=None,
        tables=None,
        data_path=None,
        epoch=None,
        topology="hierarchical",
        max_stars=6,
        stability_factor=3.0,
        strict_solver=True,
    ):
        if topology not in TOPOLOGIES:
            raise ValueError(f"Topology must be one of {TOPOLOGIES}, got {topology}")
        if max_stars < 1:
            raise ValueError(f"max_stars must be at least 1, got {max_stars}")
        if stability_factor <= 0:
            raise ValueError(
                f"stability_factor must be positive, got {stability_factor}"
            )
        self.test_mode = test_mode
        self.seed = seed
        self.tables = TableProvider(data_path) if tables is None else tables
        self.epoch = J2000 if epoch is None else Time(epoch)
        self.topology = topology
        self.max_stars = max_stars
        self.stability_factor = stability_factor
        self.strict_solver = strict_solver

        self.rng = np.random.default_rng(seed)
        self.n_generated = 0

    def generate_system(self, star_count=0, rng=None, name=None):
        """
        Generate a full stellar system: its bodies, age, abundance and orbits

        Args:
            star_count (int):
                Number of bodies, 0 or None for a random count. Forced to 2 in
                test mode.
            rng (numpy.random.Generator):
                Random source, the factory's own generator if None
            name (str):
                Name of the system, numbered after the factory's count if None

        Returns:
            system (StellarSystem):
                The frozen system
        """
        if self.test_mode:
            star_count = 2
        if rng is None:
            rng = self.rng
        self.n_generated += 1
        if name is None:
            name = f"SF-{self.n_generated:04d}"

        system = StellarSystem(name, epoch=self.epoch)
        for body in self.generate_stellar_collection(rng, star_count, name):
            system.add_body(body)

        system.compute_age()
        system.abundance, system.abundance_modifier = roll_abundance(rng, system.age)

        assemble_orbits(
            system,
            rng,
            self.tables,
            topology=self.topology,
            stability_factor=self.stability_factor,
            strict=self.strict_solver,
        )
        system.freeze()
        logger.debug(
            "Generated %s: %d bodies, %d orbits, age %.2f Gyr",
            system.name,
            len(system.bodies),
            len(system.orbits),
            system.age,
        )
        return system

    def generate_stellar_collection(self, rng, star_count=0, name="SF"):
        """
        Draw the star-like bodies of a system, ordered by descending mass and
        named A, B, C... after the system. Bodies of equal mass keep the order
        they were drawn in.

        Args:
            rng (numpy.random.Generator):
                Random source
            star_count (int):
                Number of bodies to draw. With 0 or None bodies are drawn until the
                companion roll of the last one fails or max_stars is reached.
            name (str):
                Name of the system

        Returns:
            bodies (list):
                Star and DwarfStar objects
        """
        if star_count is None:
            star_count = 0
        if star_count < 0:
            raise ValueError(f"star_count cannot be negative, got {star_count}")

        if star_count == 0:
            rows = [self.tables.pick("star_generation", rng)]
            while (
                len(rows) < self.max_stars
                and rng.random() < rows[-1]["companion_chance"]
            ):
                rows.append(self.tables.pick("star_generation", rng))
        else:
            rows = [self.tables.pick("star_generation", rng) for _ in range(star_count)]

        bodies = [self.make_body(row["kind"], rng) for row in rows]
        bodies.sort(key=lambda body: body.mass.to(u.kg).value, reverse=True)
        for i, body in enumerate(bodies):
            body.name = f"{name} {designation(i)}"
        return bodies

    def make_body(self, kind, rng, name=None):
        """
        Draw one body of the given kind ("star", "white_dwarf" or
        "brown_dwarf") with its mass and age
        """
        age = uniform_range(self.tables.pick("system_age", rng), "age", rng)
        if kind == "star":
            row = self.tables.pick("basic_star", rng)
            return Star(
                {
                    "name": name,
                    "mass": uniform_range(row, "mass", rng) * u.M_sun,
                    "age": age,
                    "spectral_type": row["spectral_type"],
                }
            )
        row = self.tables.pick(kind, rng)
        return DwarfStar(
            {
                "name": name,
                "mass": uniform_range(row, "mass", rng) * u.M_sun,
                "age": age,
                "kind": kind.split("_")[0],
            }
        )
