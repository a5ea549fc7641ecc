import logging

import astropy.units as u
import numpy as np
import pandas as pd
import xarray as xr
from astropy.time import Time, TimeDelta
from tqdm import tqdm

from stellarforge.base.orbit import J2000, as_timedelta
from stellarforge.base.star import DwarfStar, Star
from stellarforge.exceptions import CyclicOrbitGraph, DuplicateParentOrbit
from stellarforge.util.misc import quantity_values

logger = logging.getLogger(__name__)


class StellarSystem:
    """
    Class for a single stellar system. Owns its bodies (ordered by
    descending mass), the barycenters standing in for groups of them, and
    the orbits linking them.

    The system is filled during assembly and then frozen, after which the
    orbit collection cannot be changed. Orbits can still be advanced in time.

    Args:
        name (str):
            Name of the system, bodies are named after it
        epoch (astropy Time):
            Reference instant of the orbits, J2000 if None
    """

    def __init__(self, name=None, epoch=None) -> None:
        self.name = "Unnamed" if name is None else name
        self.epoch = J2000 if epoch is None else Time(epoch)
        self.bodies = []
        self.barycenters = []
        self.orbits = []
        self.age = None
        self.abundance = None
        self.abundance_modifier = None
        self.topology_error = None
        self._frozen = False

    def __repr__(self):
        return (
            f"{self.name}\tage:{self.age} Gyr\t"
            f"bodies:{len(self.bodies)}\torbits:{len(self.orbits)}\n\n"
            f"Orbits:\n{self.get_o_df()}"
        )

    @property
    def frozen(self):
        return self._frozen

    @property
    def nodes(self):
        """Every orbitable of the system, real bodies first"""
        return list(self.bodies) + list(self.barycenters)

    @property
    def date(self):
        if len(self.orbits) == 0:
            return self.epoch
        return self.orbits[0].date

    def _check_mutable(self):
        if self._frozen:
            raise RuntimeError(f"System {self.name} is assembled and cannot change")

    def _check_name(self, node):
        if any(other.name == node.name for other in self.nodes):
            raise ValueError(f"{self.name} already has a body named {node.name}")

    def add_body(self, body):
        self._check_mutable()
        self._check_name(body)
        self.bodies.append(body)

    def add_barycenter(self, barycenter):
        self._check_mutable()
        self._check_name(barycenter)
        self.barycenters.append(barycenter)

    def add_orbit(self, orbit):
        self._check_mutable()
        self.orbits.append(orbit)

    def freeze(self):
        self.bodies = tuple(self.bodies)
        self.barycenters = tuple(self.barycenters)
        self.orbits = tuple(self.orbits)
        self._frozen = True

    def compute_age(self):
        """
        The system is as old as its youngest star. White and brown dwarfs only
        count when the system has no other star.
        """
        ages = [
            body.age
            for body in self.bodies
            if isinstance(body, Star) and not isinstance(body, DwarfStar)
        ]
        if len(ages) == 0:
            ages = [
                body.age
                for body in self.bodies
                if getattr(body, "age", None) is not None
            ]
        self.age = min(ages) if ages else None
        return self.age

    def validate_hierarchy(self):
        """
        Check that bodies and orbits form a forest: each body follows at most
        one orbit, both ends of every orbit know about it, no body is its own
        ancestor and no body orbits a barycenter it is part of. Names must be
        unique, positions are reported by name.
        """
        nodes = self.nodes
        names = [node.name for node in nodes]
        if len(set(names)) != len(names):
            duplicates = sorted({name for name in names if names.count(name) > 1})
            raise ValueError(f"Body names of {self.name} are not unique: {duplicates}")
        known = {id(node) for node in nodes}
        parents = {}
        for orbit in self.orbits:
            for end in (orbit.main_body, orbit.body):
                if id(end) not in known:
                    raise CyclicOrbitGraph(
                        f"{end.name} takes part in an orbit of {self.name} "
                        "but is not one of its bodies"
                    )
            if id(orbit.body) in parents:
                raise DuplicateParentOrbit(
                    f"{orbit.body.name} follows more than one orbit in {self.name}"
                )
            parents[id(orbit.body)] = orbit
            if orbit.body.parent_orbit is not orbit:
                raise DuplicateParentOrbit(
                    f"{orbit.body.name} is registered on another parent orbit"
                )
            if not any(child is orbit for child in orbit.main_body.child_orbits):
                raise CyclicOrbitGraph(
                    f"Orbit of {orbit.body.name} is missing from the children of "
                    f"{orbit.main_body.name}"
                )
            if orbit.main_body.is_virtual and orbit.main_body.contains(orbit.body):
                raise CyclicOrbitGraph(
                    f"{orbit.body.name} orbits the barycenter {orbit.main_body.name} "
                    "it is part of"
                )

        for node in nodes:
            seen = {id(node)}
            current = node
            while current.parent_orbit is not None:
                current = current.parent_orbit.main_body
                if id(current) in seen:
                    raise CyclicOrbitGraph(f"{node.name} is its own ancestor")
                seen.add(id(current))

    def hierarchy(self):
        """
        Mapping of every body name to the name of the body it orbits, None for
        roots
        """
        return {
            node.name: None
            if node.parent_orbit is None
            else node.parent_orbit.main_body.name
            for node in self.nodes
        }

    def advance_time(self, dt):
        """Advance every orbit of the system by dt"""
        dt = as_timedelta(dt)
        for orbit in self.orbits:
            orbit.advance_time(dt)

    def body_positions(self, orbits=None):
        """
        Positions of every body in the frame of the primary: root bodies sit
        at the origin, orbiting bodies are offset from their main body and
        barycenters sit at the mass weighted mean of their members.

        Args:
            orbits (list of Orbit):
                States to use in place of the system's orbits, e.g. copies,
                in the same order as self.orbits

        Returns:
            positions (dict):
                Body name to 3-element astropy Quantity (m)
        """
        if orbits is None:
            orbits = self.orbits
        positions = {}

        def position_of(node):
            if node.name in positions:
                return positions[node.name]
            if node.is_virtual:
                weighted = sum(
                    member.mass.to(u.kg).value * position_of(member).to(u.m).value
                    for member in node.members
                )
                pos = weighted / node.mass.to(u.kg).value * u.m
            elif node.parent_orbit is None:
                pos = np.zeros(3) * u.m
            else:
                raise ValueError(
                    f"Position of {node.name} is needed before its orbit is placed"
                )
            positions[node.name] = pos
            return pos

        for link, state in zip(self.orbits, orbits):
            positions[link.body.name] = (
                position_of(link.main_body) + state.current_body_position
            )
        for node in self.nodes:
            position_of(node)
        return positions

    def propagate(self, times):
        """
        Positions of every body at the given times, which must not be before
        the current date of the system. Works on copies of the orbits, the
        system itself is not advanced.

        Args:
            times (astropy Time):
                Scalar or array of times

        Returns:
            ds (xarray Dataset):
                x, y, z (m) over (time, body)
        """
        scalar_time = times.isscalar
        if scalar_time:
            times = Time([times])
        _, unique_inds = np.unique(times.jd, return_index=True)
        times = times[unique_inds]

        states = [orbit.copy() for orbit in self.orbits]
        names = [node.name for node in self.nodes]
        data = {var: np.nan * np.ones((len(times), len(names))) for var in "xyz"}
        for i, time in enumerate(
            tqdm(times, desc=f"Propagating {self.name}", delay=0.5, leave=False)
        ):
            for state in states:
                dt = time - state.date
                if -1e-6 < dt.to_value(u.s) < 0:
                    # rounding of the Time arithmetic
                    dt = TimeDelta(0.0, format="sec")
                elif dt.to_value(u.s) < 0:
                    raise ValueError(
                        f"Cannot propagate {self.name} back to {time.iso}, "
                        f"it is already at {state.date.iso}"
                    )
                state.advance_time(dt)
            positions = self.body_positions(states)
            for j, name in enumerate(names):
                pos = positions[name].to(u.m).value
                data["x"][i, j], data["y"][i, j], data["z"][i, j] = pos

        ds = xr.Dataset(
            {var: (["time", "body"], values) for var, values in data.items()},
            coords={"time": times.datetime64, "body": names},
        )
        for var in "xyz":
            ds[var].attrs["unit"] = u.m

        if scalar_time:
            ds = ds.isel(time=0)
        logger.debug("Propagated %s over %d times", self.name, len(times))
        return ds

    def get_o_df(self):
        """DataFrame with one row per orbit"""
        return pd.DataFrame(
            [quantity_values(orbit.dump_params()) for orbit in self.orbits]
        )

    def get_b_df(self):
        """DataFrame with one row per body, barycenters included"""
        return pd.DataFrame(
            [quantity_values(node.dump_params()) for node in self.nodes]
        )

    def dump_params(self):
        params = {
            "name": self.name,
            "epoch": self.epoch,
            "age": self.age,
            "abundance": self.abundance,
            "abundance_modifier": self.abundance_modifier,
            "n_bodies": len(self.bodies),
            "n_orbits": len(self.orbits),
            "topology_error": None
            if self.topology_error is None
            else str(self.topology_error),
        }
        return params
