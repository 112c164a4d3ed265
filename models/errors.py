"""Typed failures raised by the topology extraction pipeline."""

from __future__ import annotations


class TopologyError(ValueError):
    """Base class for every failure reported by the extraction pipeline."""


class InvalidInput(TopologyError):
    """The occupancy bitmap or skeleton mask is zero-sized or malformed."""


class MalformedSkeleton(TopologyError):
    """Edge tracing stalled on a pass-through pixel before reaching a node."""


class ConfigurationError(TopologyError):
    """A threshold or tuning parameter is outside its valid range."""


class GraphInvariantError(TopologyError):
    """A topology graph would reference missing nodes or carry bad loops."""


__all__ = [
    "TopologyError",
    "InvalidInput",
    "MalformedSkeleton",
    "ConfigurationError",
    "GraphInvariantError",
]
