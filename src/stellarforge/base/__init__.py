__all__ = [
    "Orbitable",
    "Barycenter",
    "Star",
    "DwarfStar",
    "Planet",
    "Orbit",
    "StellarSystem",
    "Universe",
]

from .body import Barycenter, Orbitable
from .orbit import Orbit
from .planet import Planet
from .star import DwarfStar, Star
from .system import StellarSystem
from .universe import Universe
