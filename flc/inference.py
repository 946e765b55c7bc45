"""
Single-input Takagi-Sugeno inference.

Integrates the RuleEngine and Defuzzifier into one call that turns a crisp
temperature error into a signed actuation rate.
"""

import logging
from typing import Sequence

from flc.defuzzifier import Defuzzifier
from flc.membership import TSTriangleRule
from flc.rule_engine import RuleEngine

inference_log = logging.getLogger("inference")


class InferenceError(ValueError):
    """Raised when inference is requested over an empty rule set."""


class InferenceEngine:
    """
    Weighted-average TS combiner over a rule set.

    Attributes:
        rule_engine (RuleEngine): Produces (W, Z) per rule.
        defuzzifier (Defuzzifier): Collapses (W, Z) pairs into one value.
    """

    def __init__(self) -> None:
        self.rule_engine = RuleEngine()
        self.defuzzifier = Defuzzifier()
        inference_log.info("Inference engine initialized and ready.")

    def infer(self, crisp_input: float, rules: Sequence[TSTriangleRule]) -> float:
        """
        Executes one full inference cycle.

        Args:
            crisp_input (float): The temperature error (target - current).
            rules (Sequence[TSTriangleRule]): The rules to combine.

        Returns:
            float: The signed rate. 0.0 if no rule fires.

        Raises:
            InferenceError: If `rules` is empty.
        """
        rules = list(rules)
        if not rules:
            raise InferenceError("Cannot infer over an empty rule set.")

        inference_log.debug("--- TS Cycle Start (error= %.3f) ---", crisp_input)
        rule_outputs = self.rule_engine.evaluate(crisp_input, rules)
        rate = self.defuzzifier.defuzzify(rule_outputs)
        inference_log.debug("--- TS Cycle End (rate= %.4f) ---", rate)
        return rate
