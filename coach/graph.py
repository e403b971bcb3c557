"""
StateGraph construction for the Lightroom Coach.

Builds the LangGraph graph:
  START → model → extract → apply → review → finalize → END
with conditional routing that short-circuits to finalize on failures,
answers without an action, and edits kept without confirmation.
"""

from __future__ import annotations

from typing import Callable

from langgraph.graph import StateGraph, START, END
from langgraph.checkpoint.memory import MemorySaver

from host.executor import EditExecutor
from .state import CoachState
from .nodes import (
    make_nodes,
    route_after_model,
    route_after_extract,
    route_after_apply,
)


def build_coach_graph(
    host,
    client_factory: Callable,
    executor: EditExecutor,
    checkpointer=None,
):
    """
    Build and compile the coach StateGraph.

    Args:
        host: Host the edits are applied to.
        client_factory: Zero-argument callable returning a ModelClient; called
                        once per request so credential changes take effect.
        executor: EditExecutor owning the session's undo slot.
        checkpointer: LangGraph checkpointer (default: MemorySaver). Required
                      for the review interrupt to be resumable.

    Returns:
        Compiled LangGraph graph ready for invoke/stream.
    """
    nodes = make_nodes(host, client_factory, executor)
    builder = StateGraph(CoachState)

    for name, node in nodes.items():
        builder.add_node(name, node)

    builder.add_edge(START, "model")

    builder.add_conditional_edges(
        "model",
        route_after_model,
        {"extract": "extract", "finalize": "finalize"},
    )
    builder.add_conditional_edges(
        "extract",
        route_after_extract,
        {"apply": "apply", "finalize": "finalize"},
    )
    builder.add_conditional_edges(
        "apply",
        route_after_apply,
        {"review": "review", "finalize": "finalize"},
    )

    builder.add_edge("review", "finalize")
    builder.add_edge("finalize", END)

    if checkpointer is None:
        checkpointer = MemorySaver()

    return builder.compile(checkpointer=checkpointer)
