import astropy.units as u
import numpy as np
from astropy.time import Time, TimeDelta

# Abundance bands, inclusive (low, high, modifier). Values above the last
# band get ABUNDANCE_OVERFLOW, values below the first get ABUNDANCE_UNDERFLOW.
ABUNDANCE_BANDS = (
    (3, 9, 2),
    (10, 12, 1),
    (13, 18, 0),
    (19, 21, -1),
)
ABUNDANCE_OVERFLOW = -3
ABUNDANCE_UNDERFLOW = 0


def abundance_modifier(roll, system_age):
    """
    Map an abundance roll to the modifier used by downstream generation
    (habitability, resources).

    Args:
        roll (int):
            The raw die roll
        system_age (float):
            Age of the system in Gyr, only its integer part counts

    Returns:
        modifier (int):
            +2, +1, 0, -1 or -3
    """
    abundance = int(roll) + int(np.floor(system_age))
    for low, high, modifier in ABUNDANCE_BANDS:
        if low <= abundance <= high:
            return modifier
    if abundance > ABUNDANCE_BANDS[-1][1]:
        return ABUNDANCE_OVERFLOW
    return ABUNDANCE_UNDERFLOW


def roll_abundance(rng, system_age):
    """
    Roll the abundance of a system

    Args:
        rng (numpy.random.Generator):
            Random source
        system_age (float):
            Age of the system in Gyr

    Returns:
        abundance (int):
            Roll plus the integer part of the age
        modifier (int):
            Modifier of that abundance
    """
    roll = int(rng.integers(1, 20))
    abundance = roll + int(np.floor(system_age))
    return abundance, abundance_modifier(roll, system_age)


def weighted_index(weights, rng):
    """
    Pick an index with probability proportional to its weight
    """
    weights = np.asarray(weights, dtype=float)
    return int(rng.choice(len(weights), p=weights / weights.sum()))


def uniform_range(row, field, rng):
    """
    Draw uniformly between row[f"{field}_min"] and row[f"{field}_max"]
    """
    low = float(row[f"{field}_min"])
    high = float(row[f"{field}_max"])
    if low == high:
        return low
    return float(rng.uniform(low, high))


def as_quantity(value, unit):
    """
    Bare numbers are taken to be in the given unit, quantities are converted
    to it
    """
    if isinstance(value, u.Quantity):
        return value.to(unit)
    return value * unit


def quantity_values(params):
    """
    Strip units from a parameter dictionary so that it can be put in a
    DataFrame. Quantities keep their value, Times become decimal years and
    TimeDeltas become days.
    """
    res = {}
    for key, val in params.items():
        if isinstance(val, u.Quantity):
            res[key] = val.value
        elif isinstance(val, TimeDelta):
            res[key] = val.to(u.d).value
        elif isinstance(val, Time):
            res[key] = val.decimalyear
        else:
            res[key] = val
    return res


def designation(index):
    """
    Letter of the index-th body of a system by descending mass: A, B, ..., Z,
    then AA, BB, ...
    """
    letters = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    return letters[index % 26] * (index // 26 + 1)
