from dataclasses import dataclass
from typing import Dict, Optional, Tuple

try:
    from .errors import PointNotFoundError, InvalidPathError, MissingComputationError
except (ImportError, ValueError):
    from errors import PointNotFoundError, InvalidPathError, MissingComputationError


@dataclass(frozen=True)
class Point:
    """A node of the circuit. Two points with the same coordinates and symbol are the same node."""
    x: float
    y: float
    symbol: str = ""

    def __str__(self):
        return self.symbol

    def sort_key(self):
        return (self.x, self.y, self.symbol)


@dataclass(frozen=True)
class Component:
    """Electrical element sitting on a connection."""
    value: float

    kind = "Component"

    def reversed(self):
        """The component as seen when walking the connection backwards."""
        return self


@dataclass(frozen=True)
class Resistance(Component):
    kind = "Resistance"


@dataclass(frozen=True)
class Battery(Component):
    """
    Ideal voltage source. The first stored endpoint of its connection is the
    positive terminal, so walking it in stored order is a drop of `value`.
    """
    kind = "Battery"

    def reversed(self):
        return Battery(-self.value)


COMPONENT_KINDS = {
    "Resistance": Resistance,
    "Battery": Battery,
}


class Connection:
    """
    An edge between two points, optionally holding a component.

    Storage is directed (points[0] -> points[1]) but equality is not:
    the same pair in the opposite order is equal when its component is the
    reversed component (battery value negated).
    """

    def __init__(self, point_a: Point, point_b: Point, component: Optional[Component] = None,
                 instance_id: Optional[int] = None):
        self.points: Tuple[Point, Point] = (point_a, point_b)
        self.component = component
        # Handed out by the owning Graph, only used for canonical cycle rotation
        self.instance_id = instance_id

        self.current_sink_in_mesh: Dict[int, Point] = {}
        self._current: Optional[float] = None
        self._voltage: Optional[float] = None

    def __repr__(self):
        return f"Connection({self.points[0]!r}, {self.points[1]!r}, {self.component!r}, id={self.instance_id})"

    def __str__(self):
        return f"{self.points[0]}{self.points[1]}"

    def _key(self):
        a, b = self.points
        component = self.component
        if b.sort_key() < a.sort_key():
            a, b = b, a
            component = component.reversed() if component is not None else None
        return (a, b, component)

    def __eq__(self, other):
        if not isinstance(other, Connection):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    @property
    def is_wire(self):
        return self.component is None

    @property
    def is_battery(self):
        return isinstance(self.component, Battery)

    @property
    def is_resistance(self):
        return isinstance(self.component, Resistance)

    @property
    def is_self_loop(self):
        return self.points[0] == self.points[1]

    def has_point(self, point):
        return point == self.points[0] or point == self.points[1]

    def neighbor(self, source: Point) -> Point:
        if self.points[0] == source:
            return self.points[1]
        if self.points[1] == source:
            return self.points[0]
        raise PointNotFoundError(f"Point {source} is not an endpoint of {self}")

    def common_point(self, other: "Connection") -> Point:
        for point in self.points:
            if other.has_point(point):
                return point
        raise InvalidPathError(f"Connections {self} and {other} share no point")

    def aligned(self, source: Point) -> "Connection":
        """Copy of this connection stored so that it starts at `source`."""
        if source == self.points[0]:
            return Connection(self.points[0], self.points[1], self.component, self.instance_id)
        if source == self.points[1]:
            component = self.component.reversed() if self.component is not None else None
            return Connection(self.points[1], self.points[0], component, self.instance_id)
        raise PointNotFoundError(f"Point {source} is not an endpoint of {self}")

    # --- Solution annotations ---

    @property
    def is_computed(self):
        return self._current is not None

    @property
    def current(self) -> float:
        """Current flowing from points[0] to points[1]."""
        if self._current is None:
            raise MissingComputationError(f"Current through {self} has not been computed")
        return self._current

    @property
    def voltage(self) -> float:
        """Voltage drop from points[0] to points[1]."""
        if self._voltage is None:
            raise MissingComputationError(f"Voltage across {self} has not been computed")
        return self._voltage

    def set_current(self, current: float):
        self._current = current
        if self.component is None:
            self._voltage = 0.0
        elif isinstance(self.component, Battery):
            self._voltage = self.component.value
        else:
            self._voltage = current * self.component.value

    def reset_solution(self):
        self.current_sink_in_mesh.clear()
        self._current = None
        self._voltage = None
