import logging
import warnings

import astropy.units as u

from stellarforge.base.body import Barycenter
from stellarforge.base.orbit import Orbit
from stellarforge.base.star import DwarfStar
from stellarforge.exceptions import UnsupportedTopology, UnsupportedTopologyWarning
from stellarforge.util.misc import designation, uniform_range

logger = logging.getLogger(__name__)

TOPOLOGIES = ("hierarchical", "binary")


def draw_orbit_elements(body, rng, tables):
    """
    Eccentricity and semi-major axis for a body joining an orbit. Dwarfs use
    the ranges of their own table, everything else the companion orbits.

    Returns:
        e (float):
            Eccentricity
        a (astropy Quantity):
            Semi-major axis (AU)
    """
    if isinstance(body, DwarfStar):
        row = tables.pick(f"{body.kind}_dwarf", rng)
    else:
        row = tables.pick("companion_orbit", rng)
    e = uniform_range(row, "eccentricity", rng)
    a = uniform_range(row, "semi_major_axis", rng) * u.AU
    return e, a


def forge_orbit(main, body, rng, tables, epoch=None, min_periapsis=None, strict=True):
    """
    Roll an orbit for body around main

    Args:
        main (Orbitable):
            Body, or barycenter, to orbit
        body (Orbitable):
            Orbiting body
        rng (numpy.random.Generator):
            Random source
        tables (TableProvider):
            Generation tables
        epoch (astropy Time):
            Epoch of the orbit
        min_periapsis (astropy Quantity):
            If given the semi-major axis is widened until the periapsis is at
            least this far out
        strict (bool):
            Passed to the orbit, whether solver failures raise

    Returns:
        orbit (Orbit):
            The new orbit, already registered on both bodies
    """
    e, a = draw_orbit_elements(body, rng, tables)
    if min_periapsis is not None and a * (1 - e) < min_periapsis:
        a = (min_periapsis / (1 - e)).to(u.AU)
    return Orbit(main, body, epoch, e, a.to(u.m), strict=strict)


def assemble_orbits(
    system, rng, tables, topology="hierarchical", stability_factor=3.0, strict=True
):
    """
    Arrange the bodies of a system, ordered by descending mass (A, B, C...),
    into orbits.

    A single body gets no orbit and B always orbits A. With the hierarchical
    topology every further body orbits the barycenter of all heavier ones:
    C orbits AB, D orbits ABC and so on, each outer periapsis being at least
    stability_factor times the apoapsis of the orbit inside it. The binary
    topology stops at two bodies, larger systems keep their bodies but get
    no orbits and an UnsupportedTopology on system.topology_error.

    Args:
        system (StellarSystem):
            System with its bodies, not yet frozen
        rng (numpy.random.Generator):
            Random source
        tables (TableProvider):
            Generation tables
        topology (str):
            "hierarchical" or "binary"
        stability_factor (float):
            Minimum ratio of an outer periapsis to the inner apoapsis
        strict (bool):
            Passed to the orbits, whether solver failures raise

    Returns:
        orbits (list):
            The orbits added to the system
    """
    if topology not in TOPOLOGIES:
        raise ValueError(f"Topology must be one of {TOPOLOGIES}, got {topology}")

    bodies = list(system.bodies)
    n_bodies = len(bodies)
    added = []
    if n_bodies >= 3 and topology == "binary":
        system.topology_error = UnsupportedTopology(n_bodies, topology)
        warnings.warn(
            f"{system.name}: {system.topology_error}, its bodies have no orbits",
            UnsupportedTopologyWarning,
            stacklevel=2,
        )
    elif n_bodies >= 2:
        # B orbiting A
        inner = forge_orbit(
            bodies[0], bodies[1], rng, tables, epoch=system.epoch, strict=strict
        )
        system.add_orbit(inner)
        added.append(inner)
        for k in range(2, n_bodies):
            group = "".join(designation(i) for i in range(k))
            barycenter = Barycenter(bodies[:k], name=f"{system.name} {group}")
            system.add_barycenter(barycenter)
            inner = forge_orbit(
                barycenter,
                bodies[k],
                rng,
                tables,
                epoch=system.epoch,
                min_periapsis=stability_factor * inner.apoapsis,
                strict=strict,
            )
            system.add_orbit(inner)
            added.append(inner)

    system.validate_hierarchy()
    logger.debug(
        "Assembled %d orbits for %s (%d bodies)", len(added), system.name, n_bodies
    )
    return added
