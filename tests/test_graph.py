import unittest
import sys
import os

import numpy as np

plugin_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if plugin_dir not in sys.path:
    sys.path.insert(0, plugin_dir)

from models import Battery, Connection, Point, Resistance
from graph import Graph
from config import AnalysisConfig
from errors import CircuitTooLargeError, MissingComputationError, PointNotFoundError
from steps import Action, VoltagePath, VoltagePathStep, summarize

from circuits import grid, grid_connections, single_loop, two_meshes


def find(graph, a, b):
    for connection in graph.connections:
        if set(connection.points) == {a, b}:
            return connection
    raise AssertionError(f"No connection between {a} and {b}")


class TestGraphConstruction(unittest.TestCase):
    def test_points_are_merged(self):
        graph, (a, b, c) = single_loop()
        self.assertEqual(len(graph.points), 3)
        self.assertEqual(len(graph.connections), 3)
        self.assertEqual(len(graph.connections_at(a)), 2)
        self.assertEqual([c.instance_id for c in graph.connections], [0, 1, 2])

    def test_duplicate_connection_is_ignored(self):
        a, b = Point(0, 0, 'A'), Point(1, 0, 'B')
        graph = Graph()
        graph.add_connection(Connection(a, b, Battery(10)))
        graph.add_connection(Connection(b, a, Battery(-10)))
        graph.add_connection(Connection(a, b, Battery(10)))
        self.assertEqual(len(graph.connections), 1)
        self.assertEqual(len(graph.connections_at(a)), 1)
        self.assertEqual(len(graph.connections_at(b)), 1)

    def test_parallel_connections_are_kept(self):
        a, b = Point(0, 0, 'A'), Point(1, 0, 'B')
        graph = Graph()
        graph.add_connection(Connection(a, b, Battery(10)))
        graph.add_connection(Connection(b, a, Battery(10)))
        self.assertEqual(len(graph.connections), 2)

    def test_unknown_point(self):
        graph, _ = single_loop()
        stranger = Point(7, 7, 'Z')
        with self.assertRaises(PointNotFoundError):
            graph.find_all_paths(stranger, graph.points[0])
        with self.assertRaises(PointNotFoundError):
            graph.voltage_between(graph.points[0], stranger)
        with self.assertRaises(PointNotFoundError):
            graph.find_point('Z')
        self.assertEqual(graph.find_point('B'), Point(2, 0, 'B'))


class TestMeshes(unittest.TestCase):
    def test_single_loop(self):
        graph, _ = single_loop()
        meshes = graph.find_all_meshes()
        self.assertEqual([str(m) for m in meshes], ["ABCA"])

    def test_mesh_count_matches_circuit_rank(self):
        for graph in (single_loop()[0], two_meshes()[0], grid()):
            meshes = graph.find_all_meshes()
            expected = len(graph.connections) - len(graph.points) + 1
            self.assertEqual(len(meshes), expected)
            self.assertEqual(graph.circuit_rank(), expected)

    def test_grid_has_four_meshes(self):
        graph = grid()
        meshes = graph.find_all_meshes()
        self.assertEqual(len(meshes), 4)
        for mesh in meshes:
            self.assertEqual(len(mesh), 4)
            self.assertAlmostEqual(mesh.area, 1.0)

    def test_meshes_do_not_depend_on_insertion_order(self):
        def signature(graph):
            return {frozenset(m.connections) for m in graph.find_all_meshes()}

        forward = grid()
        backward = Graph()
        for connection in reversed(grid_connections()):
            a, b = connection.points
            component = connection.component.reversed() if connection.component is not None else None
            backward.add_connection(Connection(b, a, component))

        self.assertEqual(signature(forward), signature(backward))

    def test_meshes_are_distinct(self):
        meshes = grid().find_all_meshes()
        keys = [frozenset(m.connections) for m in meshes]
        self.assertEqual(len(keys), len(set(keys)))

    def test_meshes_are_stored_in_canonical_form(self):
        meshes = grid().find_all_meshes()
        for mesh in meshes:
            self.assertEqual(str(mesh), str(mesh.canonical()))
        keys = [m.cycle_key() for m in meshes]
        self.assertEqual(len(keys), len(set(keys)))

    def test_tree_has_no_mesh(self):
        a, b, c = Point(0, 0, 'A'), Point(1, 0, 'B'), Point(2, 0, 'C')
        graph = Graph()
        graph.add_connection(Connection(a, b, Battery(10)))
        graph.add_connection(Connection(b, c, Resistance(2)))
        self.assertEqual(graph.find_all_meshes(), [])

        graph.calculate_all_currents()
        self.assertEqual(graph.equations.shape, (0, 1))
        for connection in graph.connections:
            self.assertEqual(connection.current, 0.0)
        self.assertAlmostEqual(graph.voltage_between(a, c), 10.0)

    def test_enumeration_limit(self):
        graph = Graph(config=AnalysisConfig(max_points=2))
        a, b, c = Point(0, 0, 'A'), Point(1, 0, 'B'), Point(1, 1, 'C')
        graph.add_connection(Connection(a, b, Battery(1)))
        graph.add_connection(Connection(b, c, Resistance(1)))
        graph.add_connection(Connection(c, a))
        with self.assertRaises(CircuitTooLargeError):
            graph.calculate_all_currents()


class TestEquations(unittest.TestCase):
    def test_single_loop_equation(self):
        graph, _ = single_loop()
        equations = graph.generate_equations()
        self.assertEqual(equations.shape, (1, 2))
        self.assertEqual(equations[0, 0], 2.0)
        self.assertEqual(abs(equations[0, 1]), 10.0)

    def test_shared_resistor_couples_meshes(self):
        graph, _ = two_meshes()
        equations = graph.generate_equations()
        self.assertEqual(equations.shape, (2, 3))
        self.assertEqual(sorted([equations[0, 0], equations[1, 1]]), [5.0, 7.0])
        self.assertEqual(equations[0, 1], -3.0)
        self.assertEqual(equations[1, 0], -3.0)

    def test_solution_satisfies_equations(self):
        graph, _ = two_meshes()
        graph.calculate_all_currents()
        a = graph.equations[:, :-1]
        b = graph.equations[:, -1]
        np.testing.assert_allclose(a @ graph.mesh_currents, b, atol=1e-9)


class TestCurrents(unittest.TestCase):
    def test_single_loop(self):
        graph, (a, b, c) = single_loop()
        graph.calculate_all_currents()
        resistor = find(graph, b, c)
        self.assertAlmostEqual(abs(resistor.current), 5.0)
        self.assertAlmostEqual(abs(resistor.voltage), 10.0)
        # Conventional current leaves the battery at A and returns through C
        self.assertAlmostEqual(graph.current_between(c, b), 5.0)
        self.assertAlmostEqual(graph.current_between(a, c), 5.0)
        self.assertIsNone(graph.current_between(b, b))

    def test_two_meshes_match_node_analysis(self):
        graph, p = two_meshes()
        graph.calculate_all_currents()
        self.assertAlmostEqual(graph.current_between(p['A'], p['B']), -85 / 26)
        self.assertAlmostEqual(graph.current_between(p['B'], p['C']), -55 / 26)
        self.assertAlmostEqual(graph.current_between(p['B'], p['E']), -15 / 13)
        self.assertAlmostEqual(graph.current_between(p['E'], p['B']), 15 / 13)

    def test_kirchhoff_current_law(self):
        graph = grid()
        graph.calculate_all_currents()
        for point in graph.points:
            leaving = 0.0
            for connection in graph.connections_at(point):
                leaving += connection.current if connection.points[0] == point else -connection.current
            self.assertAlmostEqual(leaving, 0.0, places=9)

    def test_kirchhoff_voltage_law(self):
        for graph in (single_loop()[0], two_meshes()[0], grid()):
            for residual in graph.mesh_voltage_sums():
                self.assertAlmostEqual(residual, 0.0, places=9)
            self.assertTrue(graph.verify_kvl())

    def test_parallel_battery_and_resistor(self):
        a, b = Point(0, 0, 'A'), Point(1, 0, 'B')
        graph = Graph()
        graph.add_connection(Connection(a, b, Resistance(2)))
        graph.add_connection(Connection(a, b, Battery(10)))
        graph.calculate_all_currents()
        self.assertEqual(len(graph.meshes), 1)
        self.assertAlmostEqual(graph.connections[0].current, 5.0)
        self.assertAlmostEqual(graph.voltage_between(a, b), 10.0)

    def test_adding_connection_invalidates_solution(self):
        graph, (a, b, c) = single_loop()
        graph.calculate_all_currents()
        self.assertTrue(graph.solved)

        graph.add_connection(Connection(a, Point(5, 5, 'D'), Resistance(1)))
        self.assertFalse(graph.solved)
        self.assertEqual(len(graph.trace), 0)
        with self.assertRaises(MissingComputationError):
            graph.connections[0].current

    def test_solve_is_idempotent(self):
        graph, _ = two_meshes()
        graph.calculate_all_currents()
        events = len(graph.trace)
        graph.calculate_all_currents()
        self.assertEqual(len(graph.trace), events)

    def test_self_loop_leaves_circuit_unchanged(self):
        graph, (a, b, c) = single_loop()
        graph.add_connection(Connection(a, a, Resistance(1)))
        self.assertEqual(len(graph.connections), 4)
        self.assertEqual(graph.circuit_rank(), 1)

        graph.calculate_all_currents()
        self.assertEqual([str(m) for m in graph.meshes], ["ABCA"])
        self.assertAlmostEqual(graph.current_between(c, b), 5.0)
        self_loop = graph.connections[3]
        self.assertTrue(self_loop.is_self_loop)
        self.assertEqual(self_loop.current, 0.0)
        self.assertEqual(self_loop.voltage, 0.0)
        self.assertTrue(graph.verify_kvl())

    def test_unpowered_island_is_reported(self):
        graph, _ = single_loop()
        x, y, z = Point(10, 0, 'X'), Point(11, 0, 'Y'), Point(11, 1, 'Z')
        graph.add_connection(Connection(x, y, Resistance(1)))
        graph.add_connection(Connection(y, z, Resistance(1)))
        graph.add_connection(Connection(z, x))
        with self.assertLogs('kvlmesh.graph', level='WARNING'):
            graph.calculate_all_currents()
        self.assertAlmostEqual(find(graph, x, y).current, 0.0)


class TestVoltage(unittest.TestCase):
    def test_single_loop(self):
        graph, (a, b, c) = single_loop()
        self.assertAlmostEqual(graph.voltage_between(a, b), 10.0)
        self.assertAlmostEqual(graph.voltage_between(b, a), -10.0)
        self.assertAlmostEqual(graph.voltage_between(a, c), 0.0)
        self.assertAlmostEqual(abs(graph.voltage_between(b, c)), 10.0)

    def test_two_meshes_match_node_analysis(self):
        graph, p = two_meshes()
        self.assertAlmostEqual(graph.voltage_between(p['A'], p['C']), -15.0)
        self.assertAlmostEqual(graph.voltage_between(p['B'], p['E']), -45 / 13)
        self.assertAlmostEqual(graph.voltage_between(p['D'], p['F']), 0.0)

    def test_voltage_is_antisymmetric(self):
        graph = grid()
        a, i = graph.find_point('A'), graph.find_point('I')
        self.assertAlmostEqual(graph.voltage_between(a, i), -graph.voltage_between(i, a))

    def test_same_point(self):
        graph, (a, _, _) = single_loop()
        self.assertEqual(graph.voltage_between(a, a), 0.0)
        self.assertEqual(len(graph.trace), 0)

    def test_disconnected_points(self):
        graph, (a, _, _) = single_loop()
        x = Point(10, 0, 'X')
        graph.add_connection(Connection(x, Point(11, 0, 'Y'), Resistance(1)))
        self.assertIsNone(graph.voltage_between(a, x))
        self.assertIsInstance(graph.trace[-1], VoltagePath)
        self.assertIsNone(graph.trace[-1].path)

    def test_voltage_path_precedes_solution(self):
        graph, (a, b, _) = single_loop()
        graph.voltage_between(a, b)
        self.assertEqual(graph.trace.actions()[:2], [Action.VOLTAGE_COMPUTATION_PATH, Action.MESH_DETECTION])
        self.assertEqual(graph.trace.actions()[-1], Action.VOLTAGE_PART_DETECTION)

        path, steps = summarize(graph.trace).voltage_paths[0]
        self.assertEqual(str(path), "AB")
        self.assertEqual(len(steps), 1)

    def test_voltage_trace(self):
        graph, (a, b, _) = single_loop()
        graph.voltage_between(a, b)
        paths = graph.trace.of_type(VoltagePath)
        self.assertEqual([str(p.path) for p in paths], ["AB"])
        steps = graph.trace.of_type(VoltagePathStep)
        self.assertEqual(len(steps), 1)
        self.assertEqual((steps[0].source, steps[0].sink, steps[0].value), (a, b, 10.0))


if __name__ == '__main__':
    unittest.main()
