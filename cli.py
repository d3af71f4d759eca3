"""Command-line interface."""
import argparse
import logging
import sys

try:
    from .config import load_config
    from .errors import CircuitError
    from .logging_config import setup_logging
    from .netlist import build_graph, load_file
    from .plotter import Plotter
    from .report import fmt, render
except (ImportError, ValueError):
    from config import load_config
    from errors import CircuitError
    from logging_config import setup_logging
    from netlist import build_graph, load_file
    from plotter import Plotter
    from report import fmt, render

logger = logging.getLogger('kvlmesh.cli')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kvlmesh",
        description="Mesh-current analysis of planar DC circuits with a step-by-step derivation.",
    )
    parser.add_argument("circuit", help="JSON file with the circuit connections")
    parser.add_argument("--voltage", nargs=2, action="append", default=[], metavar=("A", "B"),
                        help="print the voltage between two points (by symbol); repeatable")
    parser.add_argument("--current", nargs=2, action="append", default=[], metavar=("A", "B"),
                        help="print the current from A to B through the connection joining them; repeatable")
    parser.add_argument("--plot", metavar="PNG", help="save a picture of the solved circuit")
    parser.add_argument("--config", metavar="INI", help="analysis settings file")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    parser.add_argument("--log-file", metavar="FILE", help="also write the log to FILE")
    parser.add_argument("--quiet", action="store_true", help="do not print the derivation")
    return parser


def run(args, out=None):
    out = out or sys.stdout
    config = load_config(args.config)
    graph = build_graph(load_file(args.circuit), config=config)

    graph.calculate_all_currents()
    if not args.quiet:
        for line in render(graph.trace):
            print(line, file=out)
        print(file=out)

    print("Results:", file=out)
    for connection in graph.connections:
        print(f"  {connection}: I = {fmt(connection.current)} A, V = {fmt(connection.voltage)} V", file=out)

    if not graph.verify_kvl():
        logger.warning("Solution does not satisfy KVL within tolerance.")

    for a, b in args.voltage:
        voltage = graph.voltage_between(graph.find_point(a), graph.find_point(b))
        if voltage is None:
            print(f"V({a}, {b}): no path between {a} and {b}", file=out)
        else:
            print(f"V({a}, {b}) = {fmt(voltage)} V", file=out)

    for a, b in args.current:
        current = graph.current_between(graph.find_point(a), graph.find_point(b))
        if current is None:
            print(f"I({a}, {b}): {a} and {b} are not directly connected", file=out)
        else:
            print(f"I({a}, {b}) = {fmt(current)} A", file=out)

    if args.plot:
        png = Plotter(debug=config.debug).plot_circuit(graph)
        if png is None:
            logger.warning("Nothing to plot.")
        else:
            with open(args.plot, 'wb') as f:
                f.write(png)
            logger.info(f"Saved circuit plot to {args.plot}")
    return graph


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else logging.WARNING, log_file=args.log_file)
    try:
        run(args)
    except CircuitError as e:
        logger.error(f"Analysis failed: {e}")
        return 1
    except OSError as e:
        logger.error(f"I/O error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
