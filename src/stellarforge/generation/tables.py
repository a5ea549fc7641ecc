import logging
from importlib.resources import files
from pathlib import Path

import pandas as pd

from stellarforge.exceptions import MalformedTableData
from stellarforge.util.misc import weighted_index

logger = logging.getLogger(__name__)

STAR_KINDS = ("star", "white_dwarf", "brown_dwarf")

_ORBIT_COLUMNS = [
    "eccentricity_min",
    "eccentricity_max",
    "semi_major_axis_min",
    "semi_major_axis_max",
]

# Numeric and text columns of every table, all tables also have a weight
TABLE_SCHEMAS = {
    "star_generation": {"numeric": ["companion_chance"], "text": ["kind"]},
    "basic_star": {"numeric": ["mass_min", "mass_max"], "text": ["spectral_type"]},
    "system_age": {"numeric": ["age_min", "age_max"], "text": []},
    "white_dwarf": {"numeric": ["mass_min", "mass_max"] + _ORBIT_COLUMNS, "text": []},
    "brown_dwarf": {"numeric": ["mass_min", "mass_max"] + _ORBIT_COLUMNS, "text": []},
    "companion_orbit": {"numeric": _ORBIT_COLUMNS, "text": ["separation"]},
}


def table_path(name, data_path=None):
    if data_path is None:
        return files("stellarforge").joinpath(Path("data", f"{name}.csv"))
    return Path(data_path, f"{name}.csv")


def load_table(name, data_path=None):
    """
    Load and check one generation table

    Args:
        name (str):
            Table name, one of TABLE_SCHEMAS
        data_path (str or Path):
            Directory holding the csv files, the packaged tables if None

    Returns:
        table (pandas DataFrame):
            One row per weighted entry

    Raises:
        MalformedTableData:
            If the file cannot be read or its content is unusable
    """
    if name not in TABLE_SCHEMAS:
        raise MalformedTableData(name, "unknown table")
    schema = TABLE_SCHEMAS[name]

    try:
        table = pd.read_csv(table_path(name, data_path))
    except (FileNotFoundError, pd.errors.EmptyDataError, pd.errors.ParserError) as err:
        raise MalformedTableData(name, str(err)) from err

    numeric = ["weight"] + schema["numeric"]
    missing = [col for col in numeric + schema["text"] if col not in table.columns]
    if missing:
        raise MalformedTableData(name, f"missing columns {missing}")
    if len(table) == 0:
        raise MalformedTableData(name, "no rows")

    for col in numeric:
        values = pd.to_numeric(table[col], errors="coerce")
        bad = values.isna()
        if bad.any():
            raise MalformedTableData(
                name, f"non-numeric '{col}' in rows {list(table.index[bad])}"
            )
        table[col] = values.astype(float)

    if (table["weight"] <= 0).any():
        raise MalformedTableData(name, "weights must be positive")

    for col in numeric:
        if col.endswith("_min"):
            field = col[: -len("_min")]
            if (table[f"{field}_min"] > table[f"{field}_max"]).any():
                raise MalformedTableData(name, f"{field}_min is above {field}_max")

    if "companion_chance" in table.columns:
        chance = table["companion_chance"]
        if ((chance < 0) | (chance > 1)).any():
            raise MalformedTableData(name, "companion_chance must be within [0, 1]")
    if "kind" in table.columns:
        unknown = set(table["kind"]) - set(STAR_KINDS)
        if unknown:
            raise MalformedTableData(name, f"unknown kinds {sorted(unknown)}")
    if "eccentricity_max" in table.columns:
        if ((table["eccentricity_min"] < 0) | (table["eccentricity_max"] >= 1)).any():
            raise MalformedTableData(name, "eccentricities must be within [0, 1)")

    logger.debug("Loaded table %s with %d rows", name, len(table))
    return table


class TableProvider:
    """
    Holds every generation table. All of them are loaded and checked up
    front so that a bad table fails the construction, not a later draw.

    Args:
        data_path (str or Path):
            Directory holding the csv files, the packaged tables if None
    """

    def __init__(self, data_path=None):
        self.data_path = data_path
        self.tables = {name: load_table(name, data_path) for name in TABLE_SCHEMAS}

    def __repr__(self):
        sizes = ", ".join(f"{name}:{len(table)}" for name, table in self.tables.items())
        return f"{type(self).__name__} object\n{sizes}"

    def pick(self, name, rng):
        """
        Weighted random row of a table

        Args:
            name (str):
                Table name
            rng (numpy.random.Generator):
                Random source

        Returns:
            row (pandas Series):
                The chosen row
        """
        table = self.tables[name]
        return table.iloc[weighted_index(table["weight"], rng)]
