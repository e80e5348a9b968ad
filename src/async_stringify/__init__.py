"""
Async Stringify - JSON serialization with asynchronous per-node transforms.

Mirrors ``json.dumps`` with a replacer, except that the replacer may be a
coroutine function that fetches data before a value is encoded.
"""

from .stringifier import AsyncStringifier, stringify
from .engine import TransformEngine
from .renderer import JsonRenderer
from .classifier import NodeClassifier
from .error_handler import ErrorHandler
from .types import (
    UNDEFINED,
    NodeKind,
    ErrorType,
    StringifyError,
    CircularReferenceError,
    UnrepresentableValueError,
    StringifyResult,
    TraversalStats,
)

__version__ = "1.0.0"
__all__ = [
    "AsyncStringifier",
    "stringify",
    "TransformEngine",
    "JsonRenderer",
    "NodeClassifier",
    "ErrorHandler",
    "UNDEFINED",
    "NodeKind",
    "ErrorType",
    "StringifyError",
    "CircularReferenceError",
    "UnrepresentableValueError",
    "StringifyResult",
    "TraversalStats",
]
