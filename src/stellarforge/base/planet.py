from stellarforge.base.body import Orbitable


class Planet(Orbitable):
    """
    Class for a planet. Only what orbits need, planets are not generated.
    """

    def __init__(self, planet_dict) -> None:
        super().__init__(planet_dict["name"], planet_dict["mass"])
        self.age = planet_dict.get("age")
        self.lifespan = planet_dict.get("lifespan")

    def dump_params(self):
        params = super().dump_params()
        params["age"] = self.age
        params["lifespan"] = self.lifespan
        return params
