"""Architectural layer classification."""

from __future__ import annotations

from typing import Iterable

from .models import GraphNode, Layer, LayerAssignment, NodeType


def classify_layer(node_type: NodeType, is_entry: bool, file_path: str) -> Layer:
    if is_entry or "index" in file_path or "main" in file_path:
        return Layer.ENTRY
    if node_type == NodeType.COMPONENT or "component" in file_path or "view" in file_path:
        return Layer.PRESENTATION
    if node_type in (NodeType.SERVICE, NodeType.API) or "service" in file_path:
        return Layer.BUSINESS
    if node_type == NodeType.DATABASE or "model" in file_path or "data" in file_path:
        return Layer.DATA
    if node_type in (NodeType.CONFIG, NodeType.UTILITY) or "config" in file_path:
        return Layer.INFRASTRUCTURE
    return Layer.BUSINESS


def calculate_layers(nodes: Iterable[GraphNode]) -> LayerAssignment:
    """Partition node ids so each id lands in exactly one layer."""
    layers = LayerAssignment()
    for node in nodes:
        layer = classify_layer(node.type, node.metadata.is_entry, node.file_path)
        layers.members(layer).append(node.id)
    return layers
