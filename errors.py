class CircuitError(Exception):
    """Base class for every failure raised by the analysis engine."""
    pass


class PointNotFoundError(CircuitError):
    """Raised when a queried point is not part of the graph or connection."""
    pass


class MalformedMatrixError(CircuitError):
    """Raised when an augmented matrix is not m x (m + 1)."""
    pass


class SingularSystemError(CircuitError):
    """Raised when a pivot column has no non-zero entry at or below the pivot row."""
    pass


class InvalidPathError(CircuitError):
    """Raised when connections cannot be chained into a path."""
    pass


class InvalidCycleError(InvalidPathError):
    """Raised when two paths cannot be joined into a cycle."""
    pass


class MissingComputationError(CircuitError):
    """Raised when a current or voltage is read before the circuit was solved."""
    pass


class TraceOrderError(CircuitError):
    """Raised when a trace does not respect the event ordering contract."""
    pass


class CircuitTooLargeError(CircuitError):
    """Raised when a graph exceeds the configured enumeration limit."""
    pass


class NetlistError(CircuitError):
    """Raised for malformed connection descriptions."""
    pass
