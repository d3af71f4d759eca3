"""
kvlmesh
=======

Mesh-current (KVL) analysis of planar DC circuits made of wires, resistors
and batteries, with a complete trace of every derivation step.

>>> from kvlmesh import Graph, Connection, Point, Battery, Resistance
>>> a, b, c = Point(0, 0, 'A'), Point(1, 0, 'B'), Point(1, 1, 'C')
>>> graph = Graph()
>>> graph.add_connection(Connection(a, b, Battery(10)))
>>> graph.add_connection(Connection(b, c, Resistance(2)))
>>> graph.add_connection(Connection(c, a))
>>> graph.calculate_all_currents()
"""

__version__ = "0.1.0"

from .models import Point, Component, Resistance, Battery, Connection
from .path import Path
from .graph import Graph
from .solver import EquationSolver
from .steps import Action, Trace, summarize
from .config import AnalysisConfig, load_config
from .errors import (
    CircuitError,
    PointNotFoundError,
    MalformedMatrixError,
    SingularSystemError,
    InvalidPathError,
    InvalidCycleError,
    MissingComputationError,
    TraceOrderError,
    CircuitTooLargeError,
    NetlistError,
)

__all__ = [
    '__version__',
    'Point',
    'Component',
    'Resistance',
    'Battery',
    'Connection',
    'Path',
    'Graph',
    'EquationSolver',
    'Action',
    'Trace',
    'summarize',
    'AnalysisConfig',
    'load_config',
    'CircuitError',
    'PointNotFoundError',
    'MalformedMatrixError',
    'SingularSystemError',
    'InvalidPathError',
    'InvalidCycleError',
    'MissingComputationError',
    'TraceOrderError',
    'CircuitTooLargeError',
    'NetlistError',
]
