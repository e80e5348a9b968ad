"""Core type definitions for the async stringifier."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union


class _Undefined:
    """Singleton standing in for an absent value (``undefined`` in JSON terms)."""

    _instance: Optional["_Undefined"] = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Undefined":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_Undefined":
        return self

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


class NodeKind(Enum):
    """Classification of a transformed node value."""
    UNDEFINED = "undefined"
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    FUNCTION = "function"
    HOOKED = "hooked"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    OBJECT = "object"
    UNREPRESENTABLE = "unrepresentable"

    @property
    def is_container(self) -> bool:
        return self in (NodeKind.SEQUENCE, NodeKind.MAPPING, NodeKind.OBJECT)

    @property
    def is_elided(self) -> bool:
        """Kinds dropped from objects and nulled in arrays."""
        return self in (NodeKind.UNDEFINED, NodeKind.FUNCTION)


class ErrorType(Enum):
    """Enumeration of error types."""
    CIRCULAR = "circular"
    UNREPRESENTABLE = "unrepresentable"
    TRANSFORM = "transform"


Transform = Callable[[Any, str, Any], Union[Awaitable[Any], Any]]
Space = Union[int, str, None]


@dataclass
class TraversalStats:
    """Counters collected while resolving one value tree."""
    transform_calls: int = 0
    containers_entered: int = 0
    max_depth: int = 0


@dataclass
class ErrorResponse:
    """Response for error handling."""
    can_recover: bool
    suggested_action: str
    partial_results: Optional[Any] = None


@dataclass
class StringifyResult:
    """Rendered text together with the statistics of the traversal."""
    text: Optional[str]
    stats: TraversalStats = field(default_factory=TraversalStats)


class StringifyError(Exception):
    """Base exception for failures raised by the engine itself."""

    def __init__(self, message: str, error_type: ErrorType, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_type = error_type
        self.context = context or {}


class CircularReferenceError(StringifyError, ValueError):
    """A container was reached again while it is still one of its own ancestors."""

    def __init__(self, path: List[str]):
        location = "/".join(path) if path else "<root>"
        super().__init__(
            f"Converting circular structure to JSON (cycle closes at '{location}')",
            ErrorType.CIRCULAR,
            context={"path": list(path)},
        )


class UnrepresentableValueError(StringifyError, TypeError):
    """A transform produced a scalar with no JSON mapping."""

    def __init__(self, value: Any, path: List[str]):
        type_name = type(value).__name__
        super().__init__(
            f"Do not know how to serialize a {type_name}",
            ErrorType.UNREPRESENTABLE,
            context={"type": type_name, "path": list(path)},
        )


# Abstract base classes for interfaces

class TransformEngineInterface(ABC):
    """Abstract interface for the tree transformation engine."""

    @abstractmethod
    async def resolve(self, root: Any, transform: Transform,
                      stats: Optional[TraversalStats] = None) -> Any:
        """Resolve *root* into a JSON-representable tree."""
        pass


class TextRendererInterface(ABC):
    """Abstract interface for the synchronous text renderer."""

    @abstractmethod
    def render(self, tree: Any, space: Space = None) -> str:
        """Render a resolved tree to JSON text."""
        pass


class ErrorHandlerInterface(ABC):
    """Abstract interface for error handling."""

    @abstractmethod
    def handle_stringify_error(self, error: BaseException) -> ErrorResponse:
        """Describe a failed stringify call."""
        pass
