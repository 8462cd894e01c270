"""Document extractors.

Each extractor turns the raw text of one report kind into typed records.
Extractors never raise on malformed text: unmatched lines are ignored and
unparseable fields become None.
"""

from evaldash.parsers.coverage import (
    parse_cot_coverage,
    parse_simple_coverage,
    parse_simple_instantiation,
)
from evaldash.parsers.difference import (
    parse_combined_difference,
    parse_cot_difference,
    parse_simple_difference,
)
from evaldash.parsers.grakel import parse_grakel
from evaldash.parsers.judge import (
    derive_judge_result,
    parse_global_judge_responses,
    parse_global_judge_results,
    parse_judge_responses,
    parse_judge_results,
)
from evaldash.parsers.logs import parse_cot_logs, parse_simple_logs
from evaldash.parsers.metrics import parse_cot_metrics, parse_simple_metrics
from evaldash.parsers.price import parse_price, parse_total_prices
from evaldash.parsers.shannon import parse_cot_shannon, parse_simple_shannon

__all__ = [
    "derive_judge_result",
    "parse_combined_difference",
    "parse_cot_coverage",
    "parse_cot_difference",
    "parse_cot_logs",
    "parse_cot_metrics",
    "parse_cot_shannon",
    "parse_global_judge_responses",
    "parse_global_judge_results",
    "parse_grakel",
    "parse_judge_responses",
    "parse_judge_results",
    "parse_price",
    "parse_simple_coverage",
    "parse_simple_difference",
    "parse_simple_instantiation",
    "parse_simple_logs",
    "parse_simple_metrics",
    "parse_simple_shannon",
    "parse_total_prices",
]
