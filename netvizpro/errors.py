"""
Error taxonomy for the path-analysis engine

Construction errors (TopologyError and subclasses) abort building a
topology. Query errors (UnknownNodeID) abort a single query; batch layers
record them per pair and keep going. Unreachability is never an error.
"""

from typing import Optional


class NetVizError(Exception):
    """Base class for all engine errors"""


class TopologyError(NetVizError):
    """Topology snapshot could not be built"""


class DuplicateNodeID(TopologyError):
    """Two nodes share an id"""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Duplicate node id: {node_id}")


class DuplicateLinkID(TopologyError):
    """Two links were given the same explicit id"""

    def __init__(self, link_id: str):
        self.link_id = link_id
        super().__init__(f"Duplicate link id: {link_id}")


class InvalidCost(TopologyError):
    """Link cost is not an integer inside the accepted metric range"""

    def __init__(self, link_id: str, field_name: str, value, min_cost: int, max_cost: int):
        self.link_id = link_id
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"Invalid {field_name} {value!r} on link {link_id} "
            f"(expected integer {min_cost}-{max_cost})"
        )


class UnknownNodeID(NetVizError, KeyError):
    """A referenced node id does not exist in the topology"""

    def __init__(self, node_id: str, context: Optional[str] = None):
        self.node_id = node_id
        self.context = context
        message = f"Unknown node id: {node_id}"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class UnknownLinkID(UnknownNodeID):
    """A referenced link id does not exist in the topology"""

    def __init__(self, link_id: str, context: Optional[str] = None):
        self.link_id = link_id
        super().__init__(link_id, context=context)
        message = f"Unknown link id: {link_id}"
        if context:
            message = f"{message} ({context})"
        self.args = (message,)


class AnalysisCancelled(NetVizError):
    """Batch analysis was cancelled and the caller asked to discard partial results"""

    def __init__(self, operation: str, completed: int):
        self.operation = operation
        self.completed = completed
        super().__init__(f"{operation} cancelled after {completed} completed pairs")
