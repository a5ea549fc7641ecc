import pandas as pd

from stellarforge.util.misc import quantity_values


class Universe:
    """
    The base class for universe. Keeps track of the stellar systems.
    """

    def __init__(self) -> None:
        self.names = [system.name for system in self.systems]

    def __repr__(self):
        str = f"{self.type} universe\n"
        str += f"{len(self.systems)} systems loaded"
        return str

    def __len__(self):
        return len(self.systems)

    def get_s_df(self):
        """DataFrame with one row per system"""
        return pd.DataFrame(
            [quantity_values(system.dump_params()) for system in self.systems]
        )
