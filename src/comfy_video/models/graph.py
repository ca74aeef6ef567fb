"""
Typed model of a ComfyUI workflow graph in API format.

The graph is a mapping of node id to node. Nodes are located by predicates
over their contents, never by id, because node ids differ between exported
workflows.
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from comfy_video.errors import MalformedGraph

logger = logging.getLogger(__name__)


class NodeMeta(BaseModel):
    """Editor metadata attached to a node."""
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None


class GraphNode(BaseModel):
    """One step of the workflow: a role tag plus an open parameter bag."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    class_type: str
    inputs: Dict[str, Any] = Field(default_factory=dict)
    meta: Optional[NodeMeta] = Field(None, alias="_meta")

    def has_input(self, key: str) -> bool:
        """True when the parameter is present (a JSON null still counts)."""
        return key in self.inputs

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(by_alias=True, exclude={"meta"})
        if self.meta is not None:
            payload["_meta"] = self.meta.model_dump(exclude_none=True)
        return payload


NodePredicate = Callable[[GraphNode], bool]


def node_matcher(class_type: str, *input_keys: str) -> NodePredicate:
    """
    Build the patchability test for a node role.

    A node matches when its class_type equals ``class_type`` and it exposes at
    least one of ``input_keys``. Role alone is not enough: some workflows reuse
    a loader class without the parameter we need to rewrite.
    """
    def predicate(node: GraphNode) -> bool:
        return node.class_type == class_type and any(node.has_input(key) for key in input_keys)

    return predicate


class WorkflowGraph(BaseModel):
    """
    Typed nodes plus any entries that are not nodes (notes, stray keys).

    Entries that are not objects with a ``class_type`` and an ``inputs``
    object are kept verbatim in ``passthrough``; predicates never see them.
    """
    nodes: Dict[str, GraphNode] = Field(default_factory=dict)
    passthrough: Dict[str, Any] = Field(default_factory=dict)
    order: List[str] = Field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "WorkflowGraph":
        """
        Parse workflow JSON text.

        Raises:
            MalformedGraph: if the text is not a JSON object
        """
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise MalformedGraph(
                "Invalid workflow JSON. Please check the JSON syntax and try again.",
                description=str(e),
            )

        if not isinstance(data, dict):
            raise MalformedGraph("Invalid workflow structure. The workflow must be a valid JSON object.")

        graph = cls(order=list(data))
        for node_id, value in data.items():
            if not isinstance(value, dict):
                graph.passthrough[node_id] = value
                continue
            try:
                graph.nodes[node_id] = GraphNode.model_validate(value)
            except ValidationError as e:
                logger.debug(f"[ComfyUI] Entry {node_id} is not a node, passing it through: {e.error_count()} errors")
                graph.passthrough[node_id] = value
        return graph

    def find_nodes(self, predicate: NodePredicate) -> List[GraphNode]:
        return [node for node in self.nodes.values() if predicate(node)]

    def find_node(self, predicate: NodePredicate) -> Optional[GraphNode]:
        """Return the first node in document order matching ``predicate``."""
        for node in self.nodes.values():
            if predicate(node):
                return node
        return None

    def to_payload(self) -> Dict[str, Any]:
        payload = {}
        for node_id in self.order:
            if node_id in self.nodes:
                payload[node_id] = self.nodes[node_id].to_payload()
            else:
                payload[node_id] = self.passthrough[node_id]
        return payload
