from .harness import CaseResult, run_case, run_suite, run_suite_local, summarize
from .oracle import check_property_table, compare_outputs, reconstruct, reference_output

__all__ = [
    "CaseResult",
    "check_property_table",
    "compare_outputs",
    "reconstruct",
    "reference_output",
    "run_case",
    "run_suite",
    "run_suite_local",
    "summarize",
]
