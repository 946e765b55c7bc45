"""
Membership functions for the single-input Takagi-Sugeno controller.

A membership function maps a crisp input to a degree of truth in [0.0, 1.0].
The controller only uses triangular shapes, each paired with a linear output
function of its own firing strength (a TS rule). Shapes are mutable so the
controller can re-place them whenever the temperature ranges change, without
reallocating the rule objects.
"""

from abc import ABC, abstractmethod
from typing import Callable, Tuple


class MembershipFunction(ABC):
    """
    Base class for all membership functions.

    Subclasses implement `_evaluate()` and `validate()`. Callers go through
    `evaluate()`, which never raises and returns `INVALID_VALUE` for an
    invalid shape.
    """

    INVALID_VALUE = -999.9
    MIN_VALUE = 0.0
    MAX_VALUE = 1.0

    @property
    def is_valid(self) -> bool:
        return self.validate()

    def evaluate(self, crisp_input: float) -> float:
        """
        Returns the degree of membership of `crisp_input`.

        Args:
            crisp_input (float): The crisp value to evaluate.

        Returns:
            float: A degree in [0.0, 1.0], or INVALID_VALUE if the function
                fails validation.
        """
        if not self.validate():
            return self.INVALID_VALUE
        return self._evaluate(crisp_input)

    def evaluate_checked(self, crisp_input: float) -> Tuple[bool, float]:
        """Returns (is_valid, value) in a single call."""
        valid = self.validate()
        return valid, (self._evaluate(crisp_input) if valid else self.INVALID_VALUE)

    @abstractmethod
    def _evaluate(self, crisp_input: float) -> float:
        ...

    @abstractmethod
    def validate(self) -> bool:
        ...


class TriangleMembershipFunction(MembershipFunction):
    """
    Triangular membership function defined by (a, b, c).

    Attributes:
        a (float): Left foot.
        b (float): Peak.
        c (float): Right foot.
    """

    def __init__(self, a: float = 0.0, b: float = 0.0, c: float = 0.0) -> None:
        self.a = float(a)
        self.b = float(b)
        self.c = float(c)

    @property
    def points(self) -> Tuple[float, float, float]:
        return self.a, self.b, self.c

    def validate(self) -> bool:
        return self.a <= self.b <= self.c

    def reset(self, a: float, b: float, c: float) -> None:
        """Overwrites the three control points in place."""
        self.a = float(a)
        self.b = float(b)
        self.c = float(c)

    def _evaluate(self, x: float) -> float:
        a, b, c = self.a, self.b, self.c

        # Degenerate wedge: a vertical edge touching x counts as the peak.
        if (a == b == x) or (b == c == x):
            return self.MAX_VALUE
        # Half-open bounds never admit a zero-width half.
        # left half rt triangle
        if a <= x < b:
            return (x - a) / (b - a)
        # right half rt triangle
        if b <= x < c:
            return (c - x) / (c - b)
        return self.MIN_VALUE

    def __repr__(self) -> str:
        return f"{type(self).__name__}(a={self.a:.3f}, b={self.b:.3f}, c={self.c:.3f})"


class TSTriangleRule(TriangleMembershipFunction):
    """
    A Takagi-Sugeno rule: triangular antecedent plus a crisp consequent.

    The consequent is a function of the rule's own firing strength, giving
    the rule's contribution to the actuation rate.

    Attributes:
        label (str): Linguistic label, e.g. 'HIGHER'.
        output_function (Callable[[float], float]): Maps firing strength to
            a signed rate.
    """

    def __init__(
        self,
        label: str,
        output_function: Callable[[float], float],
        a: float = 0.0,
        b: float = 0.0,
        c: float = 0.0,
    ) -> None:
        super().__init__(a, b, c)
        self.label = label
        self.output_function = output_function

    def rate_of(self, firing_strength: float) -> float:
        return float(self.output_function(firing_strength))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.label}, a={self.a:.3f}, "
            f"b={self.b:.3f}, c={self.c:.3f})"
        )


def linear_output(slope: float, bias: float = 0.0) -> Callable[[float], float]:
    """Builds the consequent `slope * w + bias`."""

    def _output(w: float) -> float:
        return slope * w + bias

    return _output
