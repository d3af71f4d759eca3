"""
Loading circuits from plain data.

A circuit is an ordered list of connections, each one

    {"a": {"x": 0, "y": 0, "symbol": "A"},
     "b": {"x": 1, "y": 0, "symbol": "B"},
     "component": {"kind": "Battery", "value": 10}}

`component` may be null (a wire). `"points": [a, b]` is accepted instead of
`a`/`b`. A file holds either that list or `{"connections": [...]}`.
"""
import json
import logging

try:
    from .models import COMPONENT_KINDS, Connection, Point
    from .graph import Graph
    from .errors import NetlistError
except (ImportError, ValueError):
    from models import COMPONENT_KINDS, Connection, Point
    from graph import Graph
    from errors import NetlistError

logger = logging.getLogger('kvlmesh.netlist')


def point_from_dict(data):
    try:
        return Point(float(data['x']), float(data['y']), str(data.get('symbol', '')))
    except (KeyError, TypeError, ValueError) as e:
        raise NetlistError(f"Invalid point {data!r}: {e}") from e


def component_from_dict(data):
    if data is None:
        return None
    try:
        kind = data['kind']
        value = float(data['value'])
    except (KeyError, TypeError, ValueError) as e:
        raise NetlistError(f"Invalid component {data!r}: {e}") from e
    component_cls = COMPONENT_KINDS.get(kind)
    if component_cls is None:
        raise NetlistError(f"Unknown component kind '{kind}'. Expected one of {', '.join(COMPONENT_KINDS)}")
    return component_cls(value)


def connection_from_dict(data):
    if not isinstance(data, dict):
        raise NetlistError(f"Connection must be an object, got {data!r}")
    if 'points' in data:
        points = data['points']
        if not isinstance(points, (list, tuple)) or len(points) != 2:
            raise NetlistError(f"Connection needs exactly two points, got {points!r}")
        a, b = points
    elif 'a' in data and 'b' in data:
        a, b = data['a'], data['b']
    else:
        raise NetlistError(f"Connection {data!r} has no endpoints")
    return Connection(point_from_dict(a), point_from_dict(b), component_from_dict(data.get('component')))


def connection_to_dict(connection):
    def point(p):
        return {'x': p.x, 'y': p.y, 'symbol': p.symbol}

    component = None
    if connection.component is not None:
        component = {'kind': connection.component.kind, 'value': connection.component.value}
    return {'a': point(connection.points[0]), 'b': point(connection.points[1]), 'component': component}


def load_connections(items):
    return [connection_from_dict(item) for item in items]


def load_file(path):
    """Reads a JSON circuit file into a list of Connections."""
    logger.info(f"Loading circuit from {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise NetlistError(f"'{path}' is not valid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get('connections')
    if not isinstance(data, list):
        raise NetlistError(f"'{path}' does not contain a list of connections")
    return load_connections(data)


def build_graph(connections, config=None, log_callback=None):
    """Graph holding `connections` (Connection objects or their dict form), added in order."""
    graph = Graph(config=config, log_callback=log_callback)
    for item in connections:
        if not isinstance(item, Connection):
            item = connection_from_dict(item)
        graph.add_connection(item)
    logger.debug(f"Built graph with {len(graph.points)} points and {len(graph.connections)} connections")
    return graph
