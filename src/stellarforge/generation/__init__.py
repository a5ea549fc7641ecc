__all__ = [
    "TableProvider",
    "load_table",
    "SystemFactory",
    "assemble_orbits",
    "forge_orbit",
    "GeneratedUniverse",
    "create_universe",
]

from .factory import SystemFactory
from .forge import assemble_orbits, forge_orbit
from .tables import TableProvider, load_table
from .universe import GeneratedUniverse, create_universe
