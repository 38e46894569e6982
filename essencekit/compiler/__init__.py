"""Utilities for discovering, parsing, and rendering essencekit components."""

from .expressions import ExpressionEvaluator
from .logic import LogicEngine, parse_logic_blocks
from .markup import BlockStore, protect_blocks, restore_blocks
from .models import ComponentDescriptor
from .registry import ComponentRegistry, discover_components
from .renderer import ComponentRenderer

__all__ = [
    "BlockStore",
    "ComponentDescriptor",
    "ComponentRegistry",
    "ComponentRenderer",
    "ExpressionEvaluator",
    "LogicEngine",
    "discover_components",
    "parse_logic_blocks",
    "protect_blocks",
    "restore_blocks",
]
