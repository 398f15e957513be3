"""
Exceptions raised by dimension-checked arithmetic.

All three are raised at the point of the offending operation and are never
retried: they indicate a modeling bug on the caller's side (e.g., a derivative
function that forgot to divide by time).
"""


class DimensionMismatch(ValueError):
    """
    Operands have different dimensions where equality is required.

    Attributes:
        left: Dimension of the left operand (or the state, inside an integrator)
        right: Dimension of the right operand
        operation: Name of the operation that failed ('add', 'subtract', ...)
        step: Integrator step index at which the mismatch occurred, if any
    """

    def __init__(self, left, right, operation: str = 'add', step=None):
        self.left = left
        self.right = right
        self.operation = operation
        self.step = step

        message = f"Cannot {operation}: dimension [{left}] does not match [{right}]"
        if step is not None:
            message = f"Step {step}: {message}"
        super().__init__(message)

    def at_step(self, step) -> 'DimensionMismatch':
        """Copy of this error attributed to an integrator step"""
        return DimensionMismatch(self.left, self.right, self.operation, step=step)

    def __reduce__(self):
        return type(self), (self.left, self.right, self.operation, self.step)


class DivisionByZero(ZeroDivisionError):
    """Divisor quantity has zero magnitude"""

    def __init__(self, dividend, divisor):
        self.dividend = dividend
        self.divisor = divisor
        super().__init__(
            f"Cannot divide quantity of dimension [{dividend}] by a zero-magnitude "
            f"quantity of dimension [{divisor}]"
        )

    def __reduce__(self):
        return type(self), (self.dividend, self.divisor)


class IrrationalDimension(ValueError):
    """Root would leave a non-integral multiple in some exponent"""

    def __init__(self, dimension, n: int):
        self.dimension = dimension
        self.n = n
        super().__init__(
            f"Cannot take root {n} of dimension [{dimension}]: "
            f"not every exponent is a multiple of {n}"
        )

    def __reduce__(self):
        return type(self), (self.dimension, self.n)
