"""
Trace events emitted while analysing a circuit.

Every reasoning step of the analysis is appended, in order, to a `Trace`.
The order carries meaning: a `MeshSequence` is always followed by the
`EquationPart` records of that mesh and exactly one `EquationAssembled`
before the next mesh starts. `summarize` regroups a trace into the
per-mesh, per-elimination and per-connection views a presentation layer
needs.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple

try:
    from .models import Connection, Point
    from .path import Path
    from .errors import TraceOrderError
except (ImportError, ValueError):
    from models import Connection, Point
    from path import Path
    from errors import TraceOrderError


class Action(Enum):
    MESH_DETECTION = "mesh_detection"
    KVL_MESH_SEQUENCE = "kvl_mesh_sequence"
    EQUATION_PART_DETECTION = "equation_part_detection"
    EQUATION_DETECTION = "equation_detection"
    EQUATION_MANIPULATION = "equation_manipulation"
    EQUATION_SOLUTION = "equation_solution"
    INDIVIDUAL_COMPUTATION = "individual_computation"
    VOLTAGE_COMPUTATION_PATH = "voltage_computation_path"
    VOLTAGE_PART_DETECTION = "voltage_part_detection"


@dataclass(frozen=True)
class MeshDetection:
    meshes: Tuple[Path, ...]
    action: ClassVar[Action] = Action.MESH_DETECTION


@dataclass(frozen=True)
class MeshSequence:
    mesh_index: int
    sequence: Path
    action: ClassVar[Action] = Action.KVL_MESH_SEQUENCE


@dataclass(frozen=True)
class EquationPart:
    """One connection walked while writing the KVL equation of a mesh."""
    connection: Connection
    positive_mesh_index: int
    negative_mesh_index: Optional[int] = None
    action: ClassVar[Action] = Action.EQUATION_PART_DETECTION


@dataclass(frozen=True)
class EquationAssembled:
    equation: Tuple[float, ...]
    equation_index: int
    action: ClassVar[Action] = Action.EQUATION_DETECTION


@dataclass(frozen=True)
class EliminationStep:
    """(from_equation) - factor_numerator/factor_denominator * (sub_equation) => (result_equation_number)"""
    from_equation: int
    sub_equation: int
    factor_numerator: float
    factor_denominator: float
    result_equation_number: int
    result_equation: Tuple[float, ...]
    action: ClassVar[Action] = Action.EQUATION_MANIPULATION


@dataclass(frozen=True)
class VariableSolved:
    equation_number: int
    variable: int
    solution: float
    action: ClassVar[Action] = Action.EQUATION_SOLUTION


@dataclass(frozen=True)
class MeshCurrentTerm:
    index: int
    positive: bool
    value: float

    @property
    def signed_value(self):
        return self.value if self.positive else -self.value


@dataclass(frozen=True)
class PerEdgeComputation:
    connection: Connection
    mesh_currents: Tuple[MeshCurrentTerm, ...]
    action: ClassVar[Action] = Action.INDIVIDUAL_COMPUTATION


@dataclass(frozen=True)
class VoltagePath:
    path: Optional[Path]
    action: ClassVar[Action] = Action.VOLTAGE_COMPUTATION_PATH


@dataclass(frozen=True)
class VoltagePathStep:
    source: Point
    sink: Point
    value: float
    action: ClassVar[Action] = Action.VOLTAGE_PART_DETECTION


class Trace:
    """Append-only ordered log of trace events."""

    def __init__(self):
        self._events = []

    def append(self, event):
        self._events.append(event)

    def __iter__(self):
        return iter(self._events)

    def __len__(self):
        return len(self._events)

    def __getitem__(self, index):
        return self._events[index]

    def of_type(self, event_type):
        return [e for e in self._events if isinstance(e, event_type)]

    def actions(self):
        return [e.action for e in self._events]


# --- Digest ---

@dataclass
class MeshWalk:
    index: int
    sequence: Path
    parts: List[EquationPart] = field(default_factory=list)
    equation: Tuple[float, ...] = ()


@dataclass
class TraceSummary:
    meshes: List[MeshWalk] = field(default_factory=list)
    eliminations: List[EliminationStep] = field(default_factory=list)
    solutions: List[VariableSolved] = field(default_factory=list)
    computations: List[PerEdgeComputation] = field(default_factory=list)
    voltage_paths: List[Tuple[Optional[Path], List[VoltagePathStep]]] = field(default_factory=list)


def summarize(trace) -> TraceSummary:
    """
    Regroup a trace into per-mesh walks, elimination steps, solutions and
    per-connection computations.

    Raises:
        TraceOrderError: if a mesh sequence is not followed by its parts and
            a single assembled equation, or a path step has no path.
    """
    summary = TraceSummary()
    events = list(trace)
    i = 0
    while i < len(events):
        event = events[i]
        if isinstance(event, MeshSequence):
            walk = MeshWalk(index=event.mesh_index, sequence=event.sequence)
            j = i + 1
            while j < len(events) and isinstance(events[j], EquationPart):
                if events[j].positive_mesh_index != event.mesh_index:
                    raise TraceOrderError(f"Equation part for mesh {events[j].positive_mesh_index} "
                                          f"inside the walk of mesh {event.mesh_index}")
                walk.parts.append(events[j])
                j += 1
            if j >= len(events) or not isinstance(events[j], EquationAssembled):
                raise TraceOrderError(f"Walk of mesh {event.mesh_index} is not closed by its equation")
            if events[j].equation_index != event.mesh_index:
                raise TraceOrderError(f"Walk of mesh {event.mesh_index} closed by equation "
                                      f"{events[j].equation_index}")
            walk.equation = events[j].equation
            summary.meshes.append(walk)
            i = j + 1
            continue

        if isinstance(event, (EquationPart, EquationAssembled)):
            raise TraceOrderError(f"{event.action.name} outside of a mesh walk")
        if isinstance(event, EliminationStep):
            summary.eliminations.append(event)
        elif isinstance(event, VariableSolved):
            summary.solutions.append(event)
        elif isinstance(event, PerEdgeComputation):
            summary.computations.append(event)
        elif isinstance(event, VoltagePath):
            summary.voltage_paths.append((event.path, []))
        elif isinstance(event, VoltagePathStep):
            if not summary.voltage_paths or summary.voltage_paths[-1][0] is None:
                raise TraceOrderError("Voltage step without a voltage path")
            summary.voltage_paths[-1][1].append(event)
        i += 1
    return summary
