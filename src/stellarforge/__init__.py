"""
Procedural generation of multi-star systems and Keplerian propagation of
their orbits.

>>> from stellarforge import SystemFactory
>>> system = SystemFactory(seed=42).generate_system(star_count=2)
>>> system.advance_time(86400.0)
"""

__all__ = [
    "Orbit",
    "StellarSystem",
    "SystemFactory",
    "create_universe",
    "eccentric_anomaly",
    "abundance_modifier",
]

__version__ = "0.1.0"

from stellarforge.base import Orbit, StellarSystem
from stellarforge.generation import SystemFactory, create_universe
from stellarforge.util import abundance_modifier, eccentric_anomaly
