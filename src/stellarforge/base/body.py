import astropy.units as u

from stellarforge.util.misc import as_quantity


class Orbitable:
    """
    Anything that can take part in an orbit. Holds the orbits it anchors
    (child_orbits) and at most one orbit it follows (parent_orbit).
    """

    is_virtual = False

    def __init__(self, name, mass):
        self.name = name
        self.mass = as_quantity(mass, u.kg)
        self.child_orbits = []
        self.parent_orbit = None

    def __repr__(self):
        return f"{type(self).__name__} object\n{self.name}"

    @property
    def is_root(self):
        return self.parent_orbit is None

    def dump_params(self):
        params = {
            "name": self.name,
            "mass": self.mass,
            "is_virtual": self.is_virtual,
            "n_children": len(self.child_orbits),
            "parent": None
            if self.parent_orbit is None
            else self.parent_orbit.main_body.name,
        }
        return params


class Barycenter(Orbitable):
    """
    Placeholder for the centre of mass of a group of bodies. Always the main
    body of the orbit it takes part in.

    Args:
        members (list):
            Bodies whose common centre this is
        name (str):
            Defaults to the member names joined by "+"
    """

    is_virtual = True

    def __init__(self, members, name=None):
        if len(members) == 0:
            raise ValueError("A barycenter needs at least one member")
        self.members = list(members)
        if name is None:
            name = "+".join(member.name for member in self.members)
        total = sum((member.mass for member in self.members), 0 * u.kg)
        super().__init__(name, total)

    def contains(self, body):
        """Whether body is one of the members, looking through nested barycenters"""
        for member in self.members:
            if member is body:
                return True
            if member.is_virtual and member.contains(body):
                return True
        return False
