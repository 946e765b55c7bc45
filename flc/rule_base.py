"""
The fixed five-rule base of the thermostat controller.

The input variable is the temperature error (target - current). Antecedents
are not hand-tuned: they are re-placed from the current world range span and
acceptance band on every evaluation, so the five triangles always tile
[-span, span] symmetrically around the acceptance band.

    MUCH_LOWER  : (-span, -span, -0.3 span)      Z = -6.0 W + 1
    LOWER       : (-0.5 span, -0.3 span, lo)     Z = -2.5 W
    ACCEPTABLE  : (lo, 0, hi)                    Z =  0
    HIGHER      : (hi, 0.3 span, 0.5 span)       Z =  2.5 W
    MUCH_HIGHER : (0.3 span, span, span)         Z =  6.0 W + 1
"""

import logging
from typing import Iterator, List, Sequence, Tuple

from flc.membership import TSTriangleRule, linear_output

rule_base_log = logging.getLogger("rule_engine")

MUCH_LOWER = "MUCH_LOWER"
LOWER = "LOWER"
ACCEPTABLE = "ACCEPTABLE"
HIGHER = "HIGHER"
MUCH_HIGHER = "MUCH_HIGHER"

RULE_LABELS = (MUCH_LOWER, LOWER, ACCEPTABLE, HIGHER, MUCH_HIGHER)

# Fraction of the span where the outer and inner wedges meet.
NEAR_FRACTION = 0.3
FAR_FRACTION = 0.5


class RuleBaseError(ValueError):
    """Raised when the rule base is malformed (wrong size or invalid shapes)."""


class RuleBase:
    """
    Owns the five TS rules and recomputes their antecedents in place.

    Attributes:
        rules (List[TSTriangleRule]): Ordered MUCH_LOWER .. MUCH_HIGHER.
    """

    def __init__(self) -> None:
        self.rules: List[TSTriangleRule] = [
            TSTriangleRule(MUCH_LOWER, linear_output(-6.0, 1.0)),
            TSTriangleRule(LOWER, linear_output(-2.5)),
            TSTriangleRule(ACCEPTABLE, linear_output(0.0)),
            TSTriangleRule(HIGHER, linear_output(2.5)),
            TSTriangleRule(MUCH_HIGHER, linear_output(6.0, 1.0)),
        ]
        self.span = 0.0
        rule_base_log.info("Rule base initialized with %d rules.", len(self.rules))

    def __iter__(self) -> Iterator[TSTriangleRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __getitem__(self, label: str) -> TSTriangleRule:
        for rule in self.rules:
            if rule.label == label:
                return rule
        raise KeyError(f"No rule labelled '{label}'")

    def update_antecedents(self, world_range: Sequence[float], acceptance_range: Sequence[float]) -> None:
        """
        Re-places all five antecedents from the current ranges.

        Args:
            world_range (Sequence[float]): (min, max) world temperature.
            acceptance_range (Sequence[float]): (lo, hi) signed offsets
                around zero error.
        """
        span = float(world_range[1]) - float(world_range[0])
        self.span = span
        lo, hi = float(acceptance_range[0]), float(acceptance_range[1])

        much_lower, lower, acceptable, higher, much_higher = self.rules
        much_lower.reset(-span, -span, -span * NEAR_FRACTION)
        lower.reset(-span * FAR_FRACTION, -span * NEAR_FRACTION, lo)
        acceptable.reset(lo, 0.0, hi)
        higher.reset(hi, span * NEAR_FRACTION, span * FAR_FRACTION)
        much_higher.reset(span * NEAR_FRACTION, span, span)

        rule_base_log.debug(
            "Antecedents updated (span=%.3f, acceptance=[%.3f, %.3f]): %s",
            span, lo, hi, self.antecedents(),
        )

    def validate(self) -> None:
        """
        Checks the rule base before inference.

        Raises:
            RuleBaseError: If the rule count is not five, the world span is
                not positive, or any triangle violates a <= b <= c.
        """
        if len(self.rules) != len(RULE_LABELS):
            raise RuleBaseError(
                f"Expected {len(RULE_LABELS)} rules, found {len(self.rules)}"
            )
        # With no span every antecedent collapses to (0, 0, 0) and all rules fire.
        if self.span <= 0.0:
            raise RuleBaseError(f"World span must be positive, got {self.span:.3f}")
        invalid = [r for r in self.rules if not r.is_valid]
        if invalid:
            raise RuleBaseError(
                "Invalid antecedent shape(s): "
                + ", ".join(f"{r.label}={r.points}" for r in invalid)
            )

    def antecedents(self) -> List[Tuple[str, float, float, float]]:
        """Returns (label, a, b, c) for each rule, for display/debugging."""
        return [(r.label, r.a, r.b, r.c) for r in self.rules]
