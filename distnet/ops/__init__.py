from .gather import gather_output, unrenumber_output
from .propagate import propagate
from .transform import NO_EDGE_PROPERTY, EdgeOperator, EdgePropertyView, ReferenceOperator, edge_property_view, run

__all__ = [
    "NO_EDGE_PROPERTY",
    "EdgeOperator",
    "EdgePropertyView",
    "ReferenceOperator",
    "edge_property_view",
    "gather_output",
    "propagate",
    "run",
    "unrenumber_output",
]
