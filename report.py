"""
Plain-text rendering of analysis traces.

Each trace event becomes one or more human readable lines, so that the
whole derivation (meshes, KVL equations, elimination steps, solutions and
per-connection results) can be printed or shown in a log window.
"""
from typing import List

try:
    from .models import Battery
    from .steps import (EliminationStep, EquationAssembled, EquationPart, MeshDetection, MeshSequence,
                        PerEdgeComputation, VariableSolved, VoltagePath, VoltagePathStep)
except (ImportError, ValueError):
    from models import Battery
    from steps import (EliminationStep, EquationAssembled, EquationPart, MeshDetection, MeshSequence,
                       PerEdgeComputation, VariableSolved, VoltagePath, VoltagePathStep)


def fmt(value) -> str:
    return f"{value:g}"


def format_row(row, equation_number) -> str:
    """Every coefficient, signed: `+2I0 -1I1 = 5 ............. (3)`"""
    parts = []
    for i, coefficient in enumerate(row[:-1]):
        sign = "+" if coefficient >= 0 else ""
        parts.append(f"{sign}{fmt(coefficient)}I{i}")
    return f"{' '.join(parts)} = {fmt(row[-1])} ............. ({equation_number})"


def format_equation(row, equation_index) -> str:
    """Non-zero terms only: `3I0 - 2I1 = 10 ... ... ... (0)`"""
    text = ""
    for i, coefficient in enumerate(row[:-1]):
        if coefficient == 0:
            continue
        if text:
            text += " + " if coefficient > 0 else " - "
            text += f"{fmt(abs(coefficient))}I{i}"
        else:
            text += f"{fmt(coefficient)}I{i}"
    if not text:
        text = "0"
    return f"{text} = {fmt(row[-1])} ... ... ... ({equation_index})"


def _describe_part(event: EquationPart) -> str:
    connection = event.connection
    text = f"Moving from {connection.points[0]} to {connection.points[1]}: "
    component = connection.component
    if component is None:
        return text + "a wire"
    if isinstance(component, Battery):
        return text + fmt(component.value)
    if event.negative_mesh_index is not None:
        current = f"(I{event.positive_mesh_index} - I{event.negative_mesh_index})"
    else:
        current = f"I{event.positive_mesh_index}"
    return text + f"{fmt(component.value)}{current}"


def _describe_computation(event: PerEdgeComputation) -> List[str]:
    connection = event.connection
    terms = "".join(("+" if t.positive else "-") + f"I{t.index}" for t in event.mesh_currents)
    if not terms:
        terms = "0"
    lines = [f"For {connection}:", f"current: {terms} = {fmt(connection.current)}"]
    if connection.is_resistance:
        lines.append(f"voltage: {fmt(connection.current)} x {fmt(connection.component.value)} "
                     f"= {fmt(connection.voltage)} V")
    else:
        lines.append(f"voltage: {fmt(connection.voltage)} V")
    return lines


def describe(event) -> List[str]:
    """Text lines for a single trace event."""
    if isinstance(event, MeshDetection):
        lines = ["Detected meshes -"]
        lines.extend(f"Mesh {i} => {mesh}" for i, mesh in enumerate(event.meshes))
        return lines

    if isinstance(event, MeshSequence):
        return [f"Traversing mesh {event.mesh_index} in sequence {event.sequence}"]

    if isinstance(event, EquationPart):
        return [_describe_part(event)]

    if isinstance(event, EquationAssembled):
        return [format_equation(event.equation, event.equation_index)]

    if isinstance(event, EliminationStep):
        return [
            f"({event.from_equation}) - {fmt(event.factor_numerator)}/{fmt(event.factor_denominator)} "
            f"* ({event.sub_equation}) => ({event.result_equation_number})",
            format_row(event.result_equation, event.result_equation_number),
        ]

    if isinstance(event, VariableSolved):
        return [f"From ({event.equation_number}), I{event.variable} = {fmt(event.solution)}"]

    if isinstance(event, PerEdgeComputation):
        return _describe_computation(event)

    if isinstance(event, VoltagePath):
        if event.path is None:
            return ["Disconnected nodes have undefined voltage difference"]
        return [f"Walking in {event.path}"]

    if isinstance(event, VoltagePathStep):
        return [f"Voltage drop from {event.source} to {event.sink} is {fmt(event.value)} V"]

    raise TypeError(f"Unknown trace event {event!r}")


def render(trace) -> List[str]:
    lines = []
    for event in trace:
        lines.extend(describe(event))
    return lines
