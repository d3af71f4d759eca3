import io
import logging

import matplotlib
# Use Agg backend to avoid GUI requirement for matplotlib, since we just want images
matplotlib.use('Agg')
import matplotlib.pyplot as plt

try:
    from .models import Battery, Resistance
    from .report import fmt
except (ImportError, ValueError):
    from models import Battery, Resistance
    from report import fmt

logger = logging.getLogger('kvlmesh.plotter')

STYLES = {
    None: dict(color='black', linewidth=1.5, linestyle='-'),
    Resistance: dict(color='tab:orange', linewidth=3.0, linestyle='-'),
    Battery: dict(color='tab:blue', linewidth=3.0, linestyle='-'),
}


class Plotter:
    def __init__(self, debug=False):
        self.debug = debug

    def plot_circuit(self, graph, meshes=None):
        """
        Draws the circuit: connections styled by component, component values
        (and currents once solved) at the middle of each connection, point
        symbols and mesh indices at mesh centroids.
        Returns PNG bytes, or None for an empty graph.
        """
        if not graph.connections:
            return None
        if meshes is None:
            meshes = graph.meshes

        try:
            fig, ax = plt.subplots(figsize=(7, 5), constrained_layout=True)

            for connection in graph.connections:
                a, b = connection.points
                style = STYLES[type(connection.component) if connection.component is not None else None]
                ax.plot([a.x, b.x], [a.y, b.y], **style)

                label = self._connection_label(connection)
                if label:
                    ax.annotate(label, ((a.x + b.x) / 2.0, (a.y + b.y) / 2.0),
                                fontsize=8, ha='center', va='bottom',
                                bbox=dict(boxstyle='round,pad=0.2', fc='white', alpha=0.8))

                if isinstance(connection.component, Battery):
                    # Marker on the positive terminal
                    ax.plot([a.x], [a.y], marker='+', markersize=10, color='tab:red')

            for point in graph.points:
                ax.scatter([point.x], [point.y], s=20, color='black', zorder=3)
                if point.symbol:
                    ax.annotate(point.symbol, (point.x, point.y), textcoords='offset points',
                                xytext=(4, 4), fontsize=9)

            for index, mesh in enumerate(meshes):
                if mesh.area <= 0:
                    continue
                cx, cy = mesh.centroid
                ax.annotate(f"I{index}", (cx, cy), ha='center', va='center', fontsize=10, color='tab:green')

            ax.set_title("Circuit" if not graph.solved else "Circuit (solved)")
            ax.set_aspect('equal', 'datalim')
            ax.axis('off')

            return self._fig_to_png(fig)
        except Exception as e:
            logger.warning(f"Circuit plot failed: {e}")
            if self.debug:
                raise
            return None

    @staticmethod
    def _connection_label(connection):
        component = connection.component
        if component is None:
            return ""
        unit = "V" if isinstance(component, Battery) else "Ω"
        label = f"{fmt(component.value)}{unit}"
        if connection.is_computed:
            label += f"\n{fmt(round(connection.current, 6))}A"
        return label

    def _fig_to_png(self, fig):
        buf = io.BytesIO()
        fig.savefig(buf, format='png', dpi=100)
        plt.close(fig)
        return buf.getvalue()
