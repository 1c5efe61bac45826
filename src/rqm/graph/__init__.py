"""Requirement dependency graph."""

from rqm.graph.requirement_graph import MAX_TRAVERSAL_DEPTH, RequirementGraph

__all__ = ["MAX_TRAVERSAL_DEPTH", "RequirementGraph"]
