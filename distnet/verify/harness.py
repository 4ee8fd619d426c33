"""Verification harness: sweep (key, payload, vertex width, edge width).

Every node runs :func:`run_suite` with the same edge list and config. For each
combination the distributed pass runs everywhere; with ``check_correctness``
the root also runs the oracle. The outcome is broadcast so every node returns
the same list of :class:`CaseResult`. A verification failure is recorded and
the sweep moves on; configuration and communication errors abort it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import Combination, SuiteConfig
from ..core.partition import EdgeList, partition_graph
from ..core.properties import vertex_property_table
from ..errors import ConfigurationError, VerificationError
from ..ops.gather import gather_output, unrenumber_output
from ..ops.propagate import propagate
from ..ops.transform import NO_EDGE_PROPERTY, ReferenceOperator, edge_property_view, run
from ..transport.local import run_local
from .oracle import check_property_table, compare_outputs, reconstruct, reference_output

__all__ = ["CaseResult", "run_case", "run_suite", "run_suite_local", "summarize"]

logger = logging.getLogger(__name__)

PASSED = "passed"
FAILED = "failed"
UNCHECKED = "unchecked"


@dataclass
class CaseResult:
    combination: Combination
    status: str
    distributed_rows: int
    reference_rows: int | None = None
    message: str = ""

    @property
    def passed(self) -> bool:
        return self.status != FAILED

    def as_dict(self) -> dict:
        return {
            **self.combination.as_dict(),
            "status": self.status,
            "distributed_rows": self.distributed_rows,
            "reference_rows": self.reference_rows,
            "message": self.message,
        }


def run_case(ctx, edges: EdgeList, config: SuiteConfig, combo: Combination, operator_factory=ReferenceOperator) -> CaseResult:
    """One combination, end to end. Collective."""
    root = config.root
    graph = partition_graph(ctx, edges, vertex_dtype=combo.vertex_dtype, edge_dtype=combo.edge_dtype)
    table = vertex_property_table(ctx, graph, config.bucket_count, config.property_kind)
    src_cache, dst_cache = propagate(ctx, graph, table)
    view = edge_property_view(graph) if config.use_edge_property else NO_EDGE_PROPERTY
    operator = operator_factory(combo.key_kind, combo.payload_kind)
    local = run(ctx, graph, src_cache, dst_cache, view, operator)

    if not config.check_correctness:
        total = sum(ctx.allgather(local.height, label="harness.count"))
        return CaseResult(combo, UNCHECKED, total)

    gathered = gather_output(ctx, unrenumber_output(ctx, graph, local), root=root)
    rebuilt = reconstruct(ctx, graph, table, root=root)

    result = None
    if ctx.rank == root:
        single, single_table = rebuilt
        reference = None
        try:
            check_property_table(single, single_table, config.bucket_count, config.property_kind)
            reference = reference_output(single, single_table, operator, config.use_edge_property)
            compare_outputs(gathered, reference, combo.as_dict())
            result = CaseResult(combo, PASSED, gathered.height, reference.height)
        except VerificationError as e:
            logger.error("verification failed for %s: %s (%s)", combo, e, e.details)
            result = CaseResult(
                combo,
                FAILED,
                gathered.height,
                None if reference is None else reference.height,
                message=str(e),
            )
    return ctx.bcast(result, root=root, label="harness.result")


def run_suite(ctx, edges: EdgeList, config: SuiteConfig | None = None, operator_factory=ReferenceOperator) -> list[CaseResult]:
    """Every configured combination on this node. Collective.

    Raises
    ------
    ConfigurationError
        If the root is not a node of this run.
    """
    config = config if config is not None else SuiteConfig()
    if config.root >= ctx.size:
        raise ConfigurationError(f"root {config.root} is not a node of a {ctx.size}-node run")
    if config.needs_tags:
        edges = edges.with_tags(config.tag_count)

    results = []
    for combo in config.combinations():
        ctx.mark(f"case {combo}")
        res = run_case(ctx, edges, config, combo, operator_factory)
        ctx.log_event("harness.case", **res.as_dict())
        if ctx.rank == config.root:
            logger.info("%s: %s (%d records)", combo, res.status, res.distributed_rows)
        results.append(res)
    return results


def run_suite_local(edges: EdgeList, config: SuiteConfig | None = None, size: int = 1, **options) -> list[CaseResult]:
    """:func:`run_suite` on ``size`` in-process nodes; the root's results."""
    config = config if config is not None else SuiteConfig()
    per_rank = run_local(run_suite, size, edges, config, **options)
    return per_rank[config.root if config.root < size else 0]


def summarize(results: list[CaseResult]) -> dict:
    out = {PASSED: 0, FAILED: 0, UNCHECKED: 0}
    for r in results:
        out[r.status] += 1
    out["ok"] = out[FAILED] == 0
    return out
