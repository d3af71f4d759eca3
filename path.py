from typing import List

from shapely.geometry import LineString, Polygon
from shapely.geometry import Point as ShapelyPoint

try:
    from .models import Connection, Point
    from .errors import InvalidCycleError, InvalidPathError
except (ImportError, ValueError):
    from models import Connection, Point
    from errors import InvalidCycleError, InvalidPathError


class Path:
    """
    An ordered walk over connections.

    `points` always holds one more entry than `connections`: connection i
    joins points[i] and points[i + 1]. A path whose first and last points
    coincide is a cycle.
    """

    def __init__(self, source: Point, connection: Connection):
        self.points: List[Point] = [source, connection.neighbor(source)]
        self.connections: List[Connection] = [connection]

    @classmethod
    def from_connections(cls, source, connections):
        if not connections:
            raise InvalidPathError("A path needs at least one connection")
        path = cls(source, connections[0])
        for connection in connections[1:]:
            path.append_connection(connection)
        return path

    def __len__(self):
        return len(self.connections)

    def __str__(self):
        return "".join(str(p) for p in self.points)

    def __repr__(self):
        return f"Path({self})"

    def __eq__(self, other):
        if not isinstance(other, Path):
            return NotImplemented
        return self.points == other.points and self.connections == other.connections

    __hash__ = None

    @property
    def is_cycle(self):
        return len(self.connections) > 1 and self.points[0] == self.points[-1]

    def append_connection(self, connection: Connection):
        tail = self.points[-1]
        if not connection.has_point(tail):
            raise InvalidPathError(f"{connection} does not continue path {self}")
        self.points.append(connection.neighbor(tail))
        self.connections.append(connection)

    def prepend_connection(self, connection: Connection):
        head = self.points[0]
        if not connection.has_point(head):
            raise InvalidPathError(f"{connection} does not lead into path {self}")
        self.points.insert(0, connection.neighbor(head))
        self.connections.insert(0, connection)

    def index_of(self, connection: Connection) -> int:
        for i, c in enumerate(self.connections):
            if c == connection:
                return i
        return -1

    def number_of_resistors(self):
        return sum(1 for c in self.connections if c.is_resistance)

    # --- Reordering ---

    def reversed(self) -> "Path":
        return Path.from_connections(self.points[-1], self.connections[::-1])

    def rotated(self, start_index: int) -> "Path":
        """Same cycle, walked from points[start_index] through connections[start_index] first."""
        n = len(self.connections)
        order = [self.connections[(start_index + i) % n] for i in range(n)]
        return Path.from_connections(self.points[start_index], order)

    def unwrap(self, start_index: int, start_point: Point) -> "Path":
        """
        Rotate (and reverse if needed) the cycle so that it starts with
        connections[start_index], leaving from `start_point`.
        """
        if self.points[start_index] == start_point:
            return self.rotated(start_index)
        # In the reversed cycle, connection i sits at index n - 1 - i
        return self.reversed().rotated(len(self.connections) - 1 - start_index)

    def canonical(self) -> "Path":
        """
        Rotation/orientation independent representative of a cycle: starts at
        the connection with the smallest instance id, leaving from its first
        stored endpoint.
        """
        start_index = min(range(len(self.connections)), key=lambda i: self.connections[i].instance_id)
        return self.unwrap(start_index, self.connections[start_index].points[0])

    def cycle_key(self):
        canonical = self.canonical()
        return tuple(c.instance_id for c in canonical.connections)

    # --- Combination ---

    def only_meets_at_start_and_end(self, other: "Path") -> bool:
        if self.points[0] != other.points[0] or self.points[-1] != other.points[-1]:
            return False
        if self == other:
            return False
        inner = set(self.points[1:-1])
        return not any(p in inner for p in other.points[1:-1])

    def concatenated(self, other: "Path") -> "Path":
        return Path.from_connections(self.points[0], self.connections + other.connections)

    @staticmethod
    def create_cycle(path_a: "Path", path_b: "Path") -> "Path":
        if not path_a.only_meets_at_start_and_end(path_b):
            raise InvalidCycleError(f"Can not create cycle with {path_a} and {path_b}")
        return path_a.concatenated(path_b.reversed())

    # --- Geometry ---

    def outline(self):
        """Shapely geometry of the cycle; a line when the cycle encloses no area."""
        coords = [(p.x, p.y) for p in self.points]
        if len(set(coords)) < 3:
            return LineString(coords)
        return Polygon(coords)

    def covers(self, point: Point) -> bool:
        """True if the point is inside the cycle or on its boundary."""
        return self.outline().covers(ShapelyPoint(point.x, point.y))

    def point_is_outside(self, point: Point) -> bool:
        return not self.covers(point)

    @property
    def area(self):
        outline = self.outline()
        return outline.area

    @property
    def centroid(self):
        c = self.outline().centroid
        return (c.x, c.y)

    def is_mesh(self, points, connections) -> bool:
        """
        A cycle is a mesh when no other connection joins two of its points and
        no other point sits inside it.
        """
        on_cycle = set(self.points)
        used = set(self.connections)
        for connection in connections:
            if connection in used or connection.is_self_loop:
                continue
            if connection.points[0] in on_cycle and connection.points[1] in on_cycle:
                return False
        outline = self.outline()
        for point in points:
            if point in on_cycle:
                continue
            if outline.covers(ShapelyPoint(point.x, point.y)):
                return False
        return True
