"""
Evaluates the TS rule base to determine rule activation and output.

For each rule it computes the firing strength (W), the degree of membership
of the crisp error in the rule's antecedent, and the rule's crisp output (Z),
given by the rule's consequent as a function of W.
"""

import logging
from typing import Iterable, List, Tuple

from flc.membership import TSTriangleRule

rule_engine_log = logging.getLogger("rule_engine")
WZ_log = logging.getLogger("WZ_engine")


class RuleEngine:
    """Evaluates a single-input Takagi-Sugeno rule set."""

    def __init__(self) -> None:
        rule_engine_log.info(
            "W is rule firing strength and Z is the crisp output for the rule."
        )

    def evaluate(self, crisp_error: float, rules: Iterable[TSTriangleRule]) -> List[Tuple[float, float]]:
        """
        Evaluates every rule; no rule is skipped.

        An invalid antecedent contributes a firing strength of 0 rather than
        its sentinel value.

        Args:
            crisp_error (float): The crisp input (target - current).
            rules (Iterable[TSTriangleRule]): The rules to evaluate.

        Returns:
            List[Tuple[float, float]]: One (W, Z) tuple per rule, in order.
        """
        rule_outputs = []

        for i, rule in enumerate(rules):
            valid, firing_strength = rule.evaluate_checked(crisp_error)
            if not valid:
                rule_engine_log.warning(
                    "Rule# %d (%s) has an invalid shape %s; W forced to 0.",
                    i, rule.label, rule.points,
                )
                firing_strength = 0.0

            z = rule.rate_of(firing_strength)
            rule_outputs.append((firing_strength, z))

            WZ_log.debug(
                "Rule# %d (%s) error= %.3f W= %.3f Z= %.3f",
                i, rule.label, crisp_error, firing_strength, z,
            )

        return rule_outputs
# End of rule_engine.py
