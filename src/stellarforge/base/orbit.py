import copy
import warnings

import astropy.constants as const
import astropy.units as u
import numpy as np
import pandas as pd
from astropy.time import Time, TimeDelta

from stellarforge.exceptions import (
    ConvergenceWarning,
    DuplicateParentOrbit,
    NonConvergence,
)
from stellarforge.util.kepler import eccentric_anomaly
from stellarforge.util.misc import as_quantity, quantity_values

J2000 = Time(2000.0, format="jyear")


class Orbit:
    """
    Two-body orbit between a main body and the body orbiting it.

    The main body is the virtual one (a barycenter) if there is one, else the
    heavier of the two. The orbit registers itself on both bodies: it is
    appended to main_body.child_orbits and becomes body.parent_orbit.

    Masses are read once, at construction. The orbital period uses only the
    main body's mass while the mean motion uses both.

    Args:
        body_a (Orbitable):
            First body
        body_b (Orbitable):
            Second body
        epoch (astropy Time):
            Instant at which the orbiting body is at periapsis, J2000 if None
        eccentricity (float):
            0 is a circle, below 1 an ellipse, 1 and above unbound
        semi_major_axis (astropy Quantity or float):
            Mean distance, floats are taken to be meters
        strict (bool):
            Whether a Kepler solver failure during advance_time raises or falls
            back to the solver's last estimate with a ConvergenceWarning
        tol (float):
            Kepler solver tolerance (radians)
        max_iter (int):
            Kepler solver iteration cap
    """

    # Fields carried over by copy(), the body references are not
    _VALUE_FIELDS = (
        "eccentricity",
        "apoapsis",
        "periapsis",
        "orbital_period",
        "epoch",
        "elapsed_time",
        "mean_anomaly",
        "eccentric_anomaly",
        "converged",
        "strict",
        "tol",
        "max_iter",
        "inclination",
        "longitude_of_ascending_node",
        "argument_of_periapsis",
        "main_mass",
        "body_mass",
    )

    def __init__(
        self,
        body_a,
        body_b,
        epoch,
        eccentricity,
        semi_major_axis,
        strict=True,
        tol=1e-6,
        max_iter=100,
    ) -> None:
        if body_a is body_b:
            raise ValueError(f"{body_a.name} cannot orbit itself")

        if body_a.is_virtual:
            main_body, body = body_a, body_b
        elif body_b.is_virtual:
            main_body, body = body_b, body_a
        elif body_a.mass >= body_b.mass:
            main_body, body = body_a, body_b
        else:
            main_body, body = body_b, body_a
        if body.is_virtual:
            raise ValueError(
                f"Barycenter {body.name} can only be the main body of an orbit"
            )

        a = as_quantity(semi_major_axis, u.m)
        if not a.value > 0:
            raise ValueError(f"Semi-major axis must be positive, got {a}")
        if not eccentricity >= 0:
            raise ValueError(f"Eccentricity must be non-negative, got {eccentricity}")
        if not main_body.mass.value > 0:
            raise ValueError(f"Main body {main_body.name} has no mass")

        if body.parent_orbit is not None:
            raise DuplicateParentOrbit(
                f"{body.name} already orbits {body.parent_orbit.main_body.name}, "
                f"cannot also orbit {main_body.name}"
            )

        # Bind the bodies to this orbit
        self.main_body = main_body
        self.body = body
        main_body.child_orbits.append(self)
        body.parent_orbit = self

        self.main_mass = main_body.mass
        self.body_mass = body.mass

        self.epoch = J2000 if epoch is None else Time(epoch)
        self.eccentricity = float(eccentricity)
        self.apoapsis = a * (1 + self.eccentricity)
        self.periapsis = a * (1 - self.eccentricity)

        # 2-D only, orientation angles are carried but not used
        self.inclination = 0 * u.rad
        self.longitude_of_ascending_node = 0 * u.rad
        self.argument_of_periapsis = 0 * u.rad

        self.orbital_period = TimeDelta(
            (2 * np.pi * np.sqrt(a**3 / (const.G * self.main_mass))).to(u.s)
        )

        self.strict = strict
        self.tol = tol
        self.max_iter = max_iter
        self.elapsed_time = TimeDelta(0.0, format="sec")
        self.mean_anomaly = 0.0
        self.eccentric_anomaly = 0.0
        self.converged = True

    def __repr__(self):
        """
        Make dataframe with orbit attributes
        """
        p_df = pd.DataFrame(quantity_values(self.dump_params()), index=[0])
        return f"{type(self).__name__} object\n{p_df}"

    def dump_params(self):
        """
        Display fields of the orbit. The two body references are only named.
        """
        params = {
            "main_body": None if self.main_body is None else self.main_body.name,
            "body": None if self.body is None else self.body.name,
            "epoch": self.epoch,
            "date": self.date,
            "elapsed_time": self.elapsed_time,
            "e": self.eccentricity,
            "apoapsis": self.apoapsis,
            "periapsis": self.periapsis,
            "a": self.semi_major_axis,
            "b": self.semi_minor_axis,
            "semi_latus_rectum": self.semi_latus_rectum,
            "T": self.orbital_period,
            "n": self.mean_motion,
            "M": self.mean_anomaly,
            "E": self.eccentric_anomaly,
            "nu": self.true_anomaly,
            "r": self.current_radius,
            "converged": self.converged,
        }
        return params

    def copy(self):
        """
        Value copy of the orbit: geometry, masses and time state. The copy is
        not linked to any body and does not register itself anywhere.
        """
        clone = Orbit.__new__(Orbit)
        clone.main_body = None
        clone.body = None
        for field in self._VALUE_FIELDS:
            setattr(clone, field, copy.deepcopy(getattr(self, field)))
        return clone

    @property
    def major_axis(self):
        return self.apoapsis + self.periapsis

    @property
    def semi_major_axis(self):
        return self.major_axis / 2

    @property
    def semi_minor_axis(self):
        return np.sqrt(self.apoapsis * self.periapsis)

    @property
    def minor_axis(self):
        return 2 * self.semi_minor_axis

    @property
    def semi_latus_rectum(self):
        return self.semi_minor_axis**2 / self.semi_major_axis

    @property
    def mean_motion(self):
        """Mean angular motion (rad/s)"""
        mu = const.G * (self.main_mass + self.body_mass)
        return np.sqrt(mu / self.semi_major_axis**3).decompose() * u.rad

    @property
    def width(self):
        return self.major_axis

    @property
    def height(self):
        return self.minor_axis

    @property
    def date(self):
        return self.epoch + self.elapsed_time

    @property
    def true_anomaly(self):
        """
        Angle between periapsis and the orbiting body (radians, [0, 2pi))
        """
        e = self.eccentricity
        nu = 2 * np.arctan(
            np.sqrt((1 + e) / (1 - e)) * np.tan(self.eccentric_anomaly / 2)
        )
        return float(nu % (2 * np.pi))

    @property
    def current_radius(self):
        """Current distance between the two bodies"""
        return self.semi_major_axis * (
            1 - self.eccentricity * np.cos(self.eccentric_anomaly)
        )

    @property
    def current_body_position(self):
        """
        Position of the orbiting body relative to the main body, in the
        orbital plane (x towards periapsis)
        """
        E = self.eccentric_anomaly
        a = self.semi_major_axis.to(u.m).value
        b = self.semi_minor_axis.to(u.m).value
        return (
            np.array([a * (np.cos(E) - self.eccentricity), b * np.sin(E), 0.0]) * u.m
        )

    @property
    def center_position(self):
        return np.zeros(3) * u.m

    def advance_time(self, dt):
        """
        Move the orbit forward in time and update its anomalies

        Args:
            dt (astropy TimeDelta, time Quantity or float):
                Time step, floats are seconds. Must not be negative.

        Raises:
            NonConvergence:
                If the Kepler solver fails and the orbit is strict. The state
                of the orbit is left as it was.
        """
        dt = as_timedelta(dt)
        if dt.to_value(u.s) < 0:
            raise ValueError(
                f"Orbits only move forward in time, got dt={dt.to_value(u.s)} s"
            )

        elapsed_time = self.elapsed_time + dt
        M = self.mean_anomaly_at(elapsed_time)
        try:
            E = eccentric_anomaly(
                M, self.eccentricity, tol=self.tol, max_iter=self.max_iter
            )
            converged = True
        except NonConvergence as err:
            if self.strict:
                raise
            warnings.warn(
                f"{err}. Keeping the last estimate.", ConvergenceWarning, stacklevel=2
            )
            E = err.estimate
            converged = False

        self.elapsed_time = elapsed_time
        self.mean_anomaly = M
        self.eccentric_anomaly = E
        self.converged = converged

    def mean_anomaly_at(self, elapsed_time):
        """
        Mean anomaly (radians, [0, 2pi)) after elapsed_time since the epoch.
        Both halves of the TimeDelta are reduced separately so that long runs
        keep their precision.
        """
        n = self.mean_motion.to(u.rad / u.d).value
        two_pi = 2 * np.pi
        M = (
            np.mod(n * elapsed_time.jd1, two_pi) + np.mod(n * elapsed_time.jd2, two_pi)
        ) % two_pi
        if M >= two_pi:
            M = 0.0
        return float(M)


def as_timedelta(dt):
    """TimeDeltas pass through, quantities are converted, floats are seconds"""
    if isinstance(dt, TimeDelta):
        return dt
    if isinstance(dt, u.Quantity):
        return TimeDelta(dt.to(u.s))
    return TimeDelta(float(dt), format="sec")
