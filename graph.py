import logging
from itertools import combinations

import numpy as np
import scipy.sparse
from scipy.sparse.csgraph import connected_components

try:
    from .models import Battery, Connection, Point, Resistance
    from .path import Path
    from .solver import EquationSolver
    from .config import AnalysisConfig
    from .errors import CircuitTooLargeError, PointNotFoundError
    from .steps import (EquationAssembled, EquationPart, MeshCurrentTerm, MeshDetection,
                        MeshSequence, PerEdgeComputation, Trace, VoltagePath, VoltagePathStep)
except (ImportError, ValueError):
    from models import Battery, Connection, Point, Resistance
    from path import Path
    from solver import EquationSolver
    from config import AnalysisConfig
    from errors import CircuitTooLargeError, PointNotFoundError
    from steps import (EquationAssembled, EquationPart, MeshCurrentTerm, MeshDetection,
                       MeshSequence, PerEdgeComputation, Trace, VoltagePath, VoltagePathStep)

logger = logging.getLogger('kvlmesh.graph')


class Graph:
    """
    Planar circuit: interned points, deduplicated connections and the
    adjacency between them.

    Points are interned into `points`; adjacency is keyed by the index of a
    point in that list. Connections get a per-graph increasing instance id
    when they are added.
    """

    def __init__(self, config=None, log_callback=None):
        self.config = config or AnalysisConfig()
        self.log_callback = log_callback

        self.points = []  # interned Points, index = vertex id
        self._point_index = {}  # { Point: index }
        self.connections = []
        self._connection_set = set()
        self._adjacency = {}  # { point index: [Connection, ...] }
        self._next_instance_id = 0

        self.solved = False
        self.meshes = []
        self.equations = None
        self.mesh_currents = None
        self.trace = Trace()

    def _log(self, msg):
        logger.debug(msg)
        if self.log_callback:
            self.log_callback(f"[GRAPH] {msg}")

    def _trace(self, trace):
        return self.trace if trace is None else trace

    # --- Construction ---

    def _intern(self, point: Point) -> int:
        idx = self._point_index.get(point)
        if idx is None:
            idx = len(self.points)
            self.points.append(point)
            self._point_index[point] = idx
        return idx

    def _index_of(self, point: Point) -> int:
        idx = self._point_index.get(point)
        if idx is None:
            raise PointNotFoundError(f"Point {point!r} not found in graph")
        return idx

    def has_point(self, point):
        return point in self._point_index

    def add_connection(self, connection: Connection):
        """
        Adds a connection, merging its endpoints onto existing points.
        Adding a connection equal to an existing one (in either direction)
        changes nothing.
        """
        idx_a = self._intern(connection.points[0])
        idx_b = self._intern(connection.points[1])
        candidate = Connection(self.points[idx_a], self.points[idx_b], connection.component)
        if candidate in self._connection_set:
            self._log(f"Ignoring duplicate connection {candidate}.")
            return

        candidate.instance_id = self._next_instance_id
        self._next_instance_id += 1

        self.connections.append(candidate)
        self._connection_set.add(candidate)
        if candidate.is_self_loop:
            self._log(f"Connection {candidate} starts and ends at the same point. It carries no current.")
        self._adjacency.setdefault(idx_a, []).append(candidate)
        if idx_b != idx_a:
            self._adjacency.setdefault(idx_b, []).append(candidate)

        self._invalidate()

    def _invalidate(self):
        self.solved = False
        self.meshes = []
        self.equations = None
        self.mesh_currents = None
        self.trace = Trace()
        for connection in self.connections:
            connection.reset_solution()

    def connections_at(self, point):
        return list(self._adjacency.get(self._index_of(point), []))

    def find_point(self, symbol):
        """First point carrying `symbol`."""
        for point in self.points:
            if point.symbol == symbol:
                return point
        raise PointNotFoundError(f"No point named '{symbol}' in graph")

    # --- Topology ---

    def components(self):
        """Connected components of the point graph as (count, labels per point index)."""
        n = len(self.points)
        if n == 0:
            return 0, np.zeros(0, dtype=np.int32)
        rows = [self._point_index[c.points[0]] for c in self.connections]
        cols = [self._point_index[c.points[1]] for c in self.connections]
        adjacency = scipy.sparse.coo_matrix((np.ones(len(rows)), (rows, cols)), shape=(n, n))
        return connected_components(csgraph=adjacency.tocsr(), directed=False, return_labels=True)

    def circuit_rank(self):
        """Number of independent loops, E - V + C. Self-loops are left out."""
        n_components, _ = self.components()
        edges = sum(1 for c in self.connections if not c.is_self_loop)
        return edges - len(self.points) + n_components

    def find_all_paths(self, source: Point, sink: Point):
        """
        Every simple path from source to sink, depth first in adjacency order.
        """
        start = self._index_of(source)
        end = self._index_of(sink)
        if start == end:
            return []

        paths = []
        visited = {start}
        walked = []  # connections leading to the top of the stack
        stack = [(start, iter(self._adjacency.get(start, [])))]
        while stack:
            current, edges = stack[-1]
            connection = next(edges, None)
            if connection is None:
                stack.pop()
                visited.discard(current)
                if walked:
                    walked.pop()
                continue

            neighbor = self._point_index[connection.neighbor(self.points[current])]
            if neighbor in visited:
                continue
            if neighbor == end:
                paths.append(Path.from_connections(self.points[start], walked + [connection]))
                continue

            visited.add(neighbor)
            walked.append(connection)
            stack.append((neighbor, iter(self._adjacency.get(neighbor, []))))
        return paths

    @staticmethod
    def _add_cycle(cycles, cycle):
        key = cycle.cycle_key()
        if key not in cycles:
            cycles[key] = cycle.canonical()

    def find_all_cycles_with(self, point_a: Point, point_b: Point):
        paths = self.find_all_paths(point_a, point_b)
        cycles = {}
        for path_1, path_2 in combinations(paths, 2):
            if path_1.only_meets_at_start_and_end(path_2):
                self._add_cycle(cycles, Path.create_cycle(path_1, path_2))
        return list(cycles.values())

    def find_all_cycles(self):
        limit = self.config.max_points
        if limit is not None and len(self.points) > limit:
            raise CircuitTooLargeError(
                f"Circuit has {len(self.points)} points, more than the configured limit of {limit}")

        cycles = {}
        # (b, a) finds exactly the cycles (a, b) already found
        for point_a, point_b in combinations(self.points, 2):
            for cycle in self.find_all_cycles_with(point_a, point_b):
                self._add_cycle(cycles, cycle)
        return list(cycles.values())

    def find_all_meshes(self, trace=None):
        trace = self._trace(trace)
        meshes = [cycle for cycle in self.find_all_cycles() if cycle.is_mesh(self.points, self.connections)]
        trace.append(MeshDetection(meshes=tuple(meshes)))
        self._log(f"Detected {len(meshes)} meshes: {', '.join(str(m) for m in meshes)}")

        rank = self.circuit_rank()
        if len(meshes) != rank:
            logger.warning(f"Found {len(meshes)} meshes but the circuit has {rank} independent loops. "
                           f"The network may not be planar.")
        return meshes

    # --- Equations ---

    def generate_equations(self, trace=None):
        """
        Builds the m x (m+1) mesh-current system, one KVL equation per mesh.
        """
        trace = self._trace(trace)
        meshes = self.find_all_meshes(trace)
        m = len(meshes)
        equations = np.zeros((m, m + 1), dtype=np.float64)
        visited = set()

        for mesh_index in range(m):
            if mesh_index in visited:
                continue
            first = meshes[mesh_index].connections[0]
            self._generate_equations_from(meshes, mesh_index, equations, 0, first.points[0], visited, trace)

        self.meshes = meshes
        self.equations = equations
        return equations

    @staticmethod
    def _find_neighbor_mesh(meshes, mesh_index, connection):
        for other_index, other in enumerate(meshes):
            if other_index == mesh_index:
                continue
            position = other.index_of(connection)
            if position >= 0:
                return other_index, position
        return None, None

    def _generate_equations_from(self, meshes, mesh_index, equations, start_index, start_point, visited, trace):
        visited.add(mesh_index)

        rhs = len(meshes)
        walk = meshes[mesh_index].unwrap(start_index, start_point)
        trace.append(MeshSequence(mesh_index=mesh_index, sequence=walk))

        next_calls = []
        for i, connection in enumerate(walk.connections):
            sink = walk.points[i + 1]
            connection.current_sink_in_mesh[mesh_index] = sink

            neighbor_index, neighbor_position = self._find_neighbor_mesh(meshes, mesh_index, connection)
            if neighbor_index is not None:
                # The neighbour walks the shared connection the other way
                next_calls.append((neighbor_index, neighbor_position, sink))

            component = connection.component
            if isinstance(component, Battery):
                if sink == connection.points[0]:
                    equations[mesh_index, rhs] += component.value
                else:
                    equations[mesh_index, rhs] -= component.value
            elif isinstance(component, Resistance):
                equations[mesh_index, mesh_index] += component.value
                if neighbor_index is not None:
                    equations[mesh_index, neighbor_index] -= component.value

            trace.append(EquationPart(
                connection=connection.aligned(walk.points[i]),
                positive_mesh_index=mesh_index,
                negative_mesh_index=neighbor_index,
            ))

        trace.append(EquationAssembled(
            equation=tuple(float(v) for v in equations[mesh_index]),
            equation_index=mesh_index,
        ))

        for neighbor_index, neighbor_position, point in next_calls:
            if neighbor_index not in visited:
                self._generate_equations_from(meshes, neighbor_index, equations, neighbor_position, point,
                                              visited, trace)

    # --- Solution ---

    def _check_islands(self):
        n_components, labels = self.components()
        if n_components <= 1:
            return
        self._log(f"Detected {n_components} isolated islands.")
        powered = set()
        for connection in self.connections:
            if isinstance(connection.component, Battery) and connection.component.value != 0:
                powered.add(labels[self._point_index[connection.points[0]]])
        for island in range(n_components):
            if island not in powered:
                members = [str(self.points[i]) for i in np.flatnonzero(labels == island)]
                logger.warning(f"Island {island} ({', '.join(members)}) has no battery. Its currents are zero.")

    def calculate_all_currents(self, trace=None):
        """
        Solves the mesh currents and stores current and voltage on every
        connection. Does nothing if the graph is already solved.
        """
        if self.solved:
            return
        trace = self._trace(trace)
        for connection in self.connections:
            connection.reset_solution()

        self._check_islands()
        equations = self.generate_equations(trace)
        mesh_currents = EquationSolver(log_callback=self.log_callback).solve(equations, trace)
        self.mesh_currents = mesh_currents

        for connection in self.connections:
            terms = tuple(
                MeshCurrentTerm(index=mesh_index, positive=sink == connection.points[1],
                                value=float(mesh_currents[mesh_index]))
                for mesh_index, sink in connection.current_sink_in_mesh.items()
            )
            connection.set_current(sum((t.signed_value for t in terms), 0.0))
            trace.append(PerEdgeComputation(connection=connection, mesh_currents=terms))

        self.solved = True
        self._log(f"Solved {len(self.meshes)} mesh currents for {len(self.connections)} connections.")

    # --- Queries ---

    def shortest_path(self, point_a: Point, point_b: Point):
        """
        The simple path with the fewest resistors, or None if there is none.
        """
        paths = self.find_all_paths(point_a, point_b)
        if not paths:
            return None
        return min(paths, key=lambda p: p.number_of_resistors())

    @staticmethod
    def _voltage_step(connection, source):
        """Voltage drop when walking `connection` away from `source`."""
        component = connection.component
        if component is None:
            return 0.0
        if isinstance(component, Battery):
            value = component.value
        else:
            value = connection.current * component.value
        return value if source == connection.points[0] else -value

    def voltage_between(self, point_a: Point, point_b: Point, trace=None):
        """
        V(a) - V(b), walked along the shortest path.

        Returns:
            float, or None when no path joins the two points.
        """
        trace = self._trace(trace)
        if self._index_of(point_a) == self._index_of(point_b):
            return 0.0

        path = self.shortest_path(point_a, point_b)
        if path is None:
            trace.append(VoltagePath(path=None))
            self._log(f"No path between {point_a} and {point_b}.")
            return None

        trace.append(VoltagePath(path=path))
        self.calculate_all_currents(trace)
        voltage = 0.0
        for i, connection in enumerate(path.connections):
            value = self._voltage_step(connection, path.points[i])
            trace.append(VoltagePathStep(source=path.points[i], sink=path.points[i + 1], value=value))
            voltage += value
        return voltage

    def current_between(self, point_a: Point, point_b: Point, trace=None):
        """
        Current flowing from a to b through the connection joining them, or
        None if they are not directly connected.
        """
        self._index_of(point_b)
        for connection in self.connections_at(point_a):
            if connection.neighbor(point_a) == point_b:
                self.calculate_all_currents(trace)
                if connection.points[0] == point_a:
                    return connection.current
                return -connection.current
        return None

    def mesh_voltage_sums(self):
        """Sum of voltage drops around every mesh; zero when KVL holds."""
        self.calculate_all_currents()
        sums = []
        for mesh in self.meshes:
            total = 0.0
            for i, connection in enumerate(mesh.connections):
                total += self._voltage_step(connection, mesh.points[i])
            sums.append(total)
        return sums

    def verify_kvl(self, tolerance=None):
        if tolerance is None:
            tolerance = self.config.kvl_tolerance
        ok = True
        for mesh_index, residual in enumerate(self.mesh_voltage_sums()):
            if abs(residual) > tolerance:
                logger.warning(f"KVL residual of mesh {mesh_index} is {residual:.3e} V")
                ok = False
        return ok
