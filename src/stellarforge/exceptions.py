class StellarForgeError(Exception):
    """Base class for the errors raised by stellarforge."""

    pass


class MalformedTableData(StellarForgeError, ValueError):
    """
    A generation table is missing, is missing columns, or holds values that
    cannot be used (non-numeric fields, non-positive weights, min > max).

    Args:
        table (str):
            Name of the offending table
        reason (str):
            What is wrong with it
    """

    def __init__(self, table, reason):
        self.table = table
        self.reason = reason
        super().__init__(f"Table '{table}' is malformed: {reason}")


class NonConvergence(StellarForgeError, ArithmeticError):
    """
    The Kepler solver ran out of iterations.

    Attributes:
        estimate (float):
            Last eccentric anomaly estimate (radians)
        iterations (int):
            Number of iterations performed
    """

    def __init__(self, mean_anomaly, eccentricity, estimate, iterations):
        self.mean_anomaly = mean_anomaly
        self.eccentricity = eccentricity
        self.estimate = estimate
        self.iterations = iterations
        super().__init__(
            f"Kepler's equation did not converge after {iterations} iterations "
            f"for M={mean_anomaly}, e={eccentricity} (last E={estimate})"
        )


class DuplicateParentOrbit(StellarForgeError):
    """A body was assigned a second parent orbit."""

    pass


class CyclicOrbitGraph(StellarForgeError):
    """The body/orbit graph of a system is not a forest."""

    pass


class UnsupportedTopology(StellarForgeError):
    """
    No orbit topology is available for this many bodies. Recorded on the
    system by the assembler rather than raised.
    """

    def __init__(self, n_bodies, topology):
        self.n_bodies = n_bodies
        self.topology = topology
        super().__init__(
            f"Topology '{topology}' cannot arrange {n_bodies} bodies into orbits"
        )


class ConvergenceWarning(UserWarning):
    pass


class UnsupportedTopologyWarning(UserWarning):
    pass
