import logging

import numpy as np

try:
    from .errors import MalformedMatrixError, SingularSystemError
    from .steps import EliminationStep, VariableSolved
except (ImportError, ValueError):
    from errors import MalformedMatrixError, SingularSystemError
    from steps import EliminationStep, VariableSolved

logger = logging.getLogger('kvlmesh.solver')


class EquationSolver:
    """
    Gaussian elimination with partial pivoting over a dense m x (m+1)
    augmented matrix, recording every row operation in a trace.
    """

    def __init__(self, log_callback=None):
        self.log_callback = log_callback

    def _log(self, msg):
        logger.debug(msg)
        if self.log_callback:
            self.log_callback(f"[SOLVER] {msg}")

    @staticmethod
    def _as_matrix(equations):
        rows = [list(row) for row in equations]
        for row in rows:
            if len(row) != len(rows) + 1:
                raise MalformedMatrixError(
                    f"Equation matrix is not a valid gaussian matrix. "
                    f"The dimension has to be m x (m + 1), got a row of {len(row)} entries for m = {len(rows)}")
        if not rows:
            return np.zeros((0, 1), dtype=np.float64)
        return np.array(rows, dtype=np.float64)

    def solve(self, equations, trace=None):
        """
        Solves the augmented system [A | b].

        Args:
            equations: m rows of m coefficients followed by the constant term.
            trace: optional Trace receiving EliminationStep and VariableSolved events.

        Returns:
            numpy array of the m unknowns.
        """
        matrix = self._as_matrix(equations)
        m = matrix.shape[0]
        self._log(f"Solving {m} x {m + 1} system.")

        # Label of the equation currently stored in each row
        equation_numbers = list(range(m))
        equation_counter = m

        for pivot in range(m):
            # Earliest row wins on equal magnitude
            winner = pivot + int(np.argmax(np.abs(matrix[pivot:, pivot])))
            if winner != pivot:
                matrix[[pivot, winner]] = matrix[[winner, pivot]]
                equation_numbers[pivot], equation_numbers[winner] = equation_numbers[winner], equation_numbers[pivot]
                self._log(f"Pivot {pivot}: swapped rows {pivot} and {winner}.")

            if matrix[pivot, pivot] == 0:
                raise SingularSystemError(
                    f"Cannot solve: column {pivot} has no non-zero pivot "
                    f"(more equations than independent variables)")

            for row in range(pivot + 1, m):
                numerator = float(matrix[row, pivot])
                denominator = float(matrix[pivot, pivot])
                if numerator == 0:
                    continue

                matrix[row] -= matrix[pivot] * (numerator / denominator)

                if trace is not None:
                    trace.append(EliminationStep(
                        from_equation=equation_numbers[row],
                        sub_equation=equation_numbers[pivot],
                        factor_numerator=numerator,
                        factor_denominator=denominator,
                        result_equation_number=equation_counter,
                        result_equation=tuple(float(v) for v in matrix[row]),
                    ))
                equation_numbers[row] = equation_counter
                equation_counter += 1

        solutions = np.zeros(m, dtype=np.float64)
        for row in range(m - 1, -1, -1):
            rest = np.dot(matrix[row, row + 1:m], solutions[row + 1:m])
            solutions[row] = (matrix[row, m] - rest) / matrix[row, row]
            if trace is not None:
                trace.append(VariableSolved(
                    equation_number=equation_numbers[row],
                    variable=row,
                    solution=float(solutions[row]),
                ))

        if np.any(np.isnan(solutions)):
            logger.warning("Solution contains NaN values.")
        return solutions
