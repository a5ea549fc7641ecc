__all__ = [
    "eccentric_anomaly",
    "kepler_residual",
    "abundance_modifier",
    "roll_abundance",
    "weighted_index",
    "uniform_range",
    "as_quantity",
    "quantity_values",
    "designation",
]

from .kepler import eccentric_anomaly, kepler_residual
from .misc import (
    abundance_modifier,
    roll_abundance,
    weighted_index,
    uniform_range,
    as_quantity,
    quantity_values,
    designation,
)
