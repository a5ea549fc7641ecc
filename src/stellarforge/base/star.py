import astropy.units as u

from stellarforge.base.body import Orbitable


class Star(Orbitable):
    """
    A main sequence star of a system

    Args:
        star_dict (dict):
            Needs "name", "mass" and "age" (Gyr), optionally "spectral_type"
    """

    def __init__(self, star_dict):
        super().__init__(star_dict["name"], star_dict["mass"])
        self.spectral_type = star_dict.get("spectral_type")
        self.age = star_dict["age"]

    def __repr__(self):
        return f"{type(self).__name__} object\n{self.name}\tType:{self.spectral_type}"

    def dump_params(self):
        params = super().dump_params()
        params["spectral_type"] = self.spectral_type
        params["age"] = self.age
        params["mass_sun"] = self.mass.to(u.M_sun).value
        return params


class DwarfStar(Star):
    """
    A white or brown dwarf. Its age does not count towards the age of the
    system.
    """

    KINDS = ("white", "brown")

    def __init__(self, star_dict):
        kind = star_dict["kind"]
        if kind not in self.KINDS:
            raise ValueError(f"Dwarf kind must be one of {self.KINDS}, got {kind}")
        star_dict = dict(star_dict)
        star_dict.setdefault("spectral_type", "D" if kind == "white" else "BD")
        super().__init__(star_dict)
        self.kind = kind

    def dump_params(self):
        params = super().dump_params()
        params["kind"] = self.kind
        return params
