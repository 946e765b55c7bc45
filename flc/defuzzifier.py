"""
Computes the final crisp output from the aggregated fuzzy rule outputs.

This module implements the defuzzification process for a Sugeno-type system,
which calculates the weighted average of the outputs of all fuzzy rules.
"""

import logging
from typing import List, Tuple

defuzzifier_log = logging.getLogger("defuzzifier")


class Defuzzifier:
    """Performs Sugeno-style weighted average defuzzification."""

    def __init__(self):
        """Initializes the Defuzzifier."""
        defuzzifier_log.info("Defuzzifier initialized.")

    def defuzzify(self, rule_outputs: List[Tuple[float, float]]) -> float:
        """
        Calculates the final crisp output value.

        The output is the weighted average of all rule outputs, calculated as:
        rate = (Σ(Wi * Zi)) / (Σ Wi)
        where Wi is the firing strength and Zi is the crisp output of rule i.

        Args:
            rule_outputs (List[Tuple[float, float]]): A list of (W, Z) tuples
                from the RuleEngine, where W is firing strength and Z is output.

        Returns:
            float: The signed actuation rate. Returns exactly 0.0 when no rule
                fires, instead of the indeterminate 0/0.
        """
        numerator = 0.0
        denominator = 0.0

        for w, z in rule_outputs:
            numerator += w * z
            denominator += w

        if denominator <= 0.0:
            defuzzifier_log.warning("Sum of firing strengths is zero. Outputting 0.")
            return 0.0

        final_output = numerator / denominator

        defuzzifier_log.debug(
            "Defuzzified output: %.4f (from %d rules, ΣW= %.3f)",
            final_output,
            len(rule_outputs),
            denominator,
        )
        return final_output
