"""Node classification for values handed back by a transform."""

import datetime
import decimal
import fractions
import logging
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any, Callable, Iterator, Optional, Tuple
from .types import NodeKind, UNDEFINED


HOOK_NAME = "to_json"

UNREPRESENTABLE_TYPES = (
    decimal.Decimal,
    fractions.Fraction,
    complex,
    bytes,
    bytearray,
    memoryview,
)

DATETIME_TYPES = (datetime.datetime, datetime.date, datetime.time)


class NodeClassifier:
    """
    Classifies a node value into a ``NodeKind``.

    Classification happens once per node so the engine can branch on a
    single tag instead of inspecting the value repeatedly. The order of the
    checks matters: ``bool`` before numbers, callables before hooks, hooks
    before containers.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the classifier.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    def classify(self, value: Any, use_hooks: bool = True) -> NodeKind:
        """
        Classify a single value.

        Args:
            value: Value returned by a transform
            use_hooks: When False, objects with a hook classify as what
                they are underneath

        Returns:
            NodeKind tag for the value
        """
        if value is UNDEFINED:
            return NodeKind.UNDEFINED
        if value is None:
            return NodeKind.NULL
        if isinstance(value, bool):
            return NodeKind.BOOLEAN
        if isinstance(value, UNREPRESENTABLE_TYPES):
            return NodeKind.UNREPRESENTABLE
        if isinstance(value, (int, float)):
            return NodeKind.NUMBER
        if isinstance(value, str):
            return NodeKind.STRING

        is_sequence = isinstance(value, (list, tuple))
        is_mapping = isinstance(value, Mapping)
        if callable(value) and not (is_sequence or is_mapping):
            return NodeKind.FUNCTION
        if use_hooks and self.get_hook(value) is not None:
            return NodeKind.HOOKED
        if is_sequence:
            return NodeKind.SEQUENCE
        if is_mapping:
            return NodeKind.MAPPING
        return NodeKind.OBJECT

    def get_hook(self, value: Any) -> Optional[Callable[[], Any]]:
        """Return the zero-argument serialization hook of *value*, if any."""
        if isinstance(value, DATETIME_TYPES):
            return value.isoformat
        hook = getattr(value, HOOK_NAME, None)
        if callable(hook):
            return hook
        return None

    def iter_items(self, value: Any, kind: NodeKind) -> Iterator[Tuple[str, Any]]:
        """
        Enumerate the children of a container as ``(key, child)`` pairs.

        Sequences yield every index in order. Mappings yield their keys in
        insertion order, with scalar keys coerced to text the way ``json``
        coerces them and any other key type skipped. Keys that coerce to the
        same text (``1`` and ``"1"``) are both yielded; the assembled object
        keeps the last one. Plain objects yield their public attributes
        (dataclasses in field order).
        """
        if kind is NodeKind.SEQUENCE:
            for index, item in enumerate(value):
                yield str(index), item
        elif kind is NodeKind.MAPPING:
            for key, item in value.items():
                text = self.coerce_key(key)
                if text is None:
                    self.logger.debug(f"Skipping non-string key of type {type(key).__name__}")
                    continue
                yield text, item
        elif kind is NodeKind.OBJECT:
            if is_dataclass(value):
                names = [f.name for f in fields(value)]
            else:
                names = list(getattr(value, "__dict__", {}))
            for name in names:
                if not name.startswith("_"):
                    yield name, getattr(value, name)
        else:
            raise ValueError(f"Not a container kind: {kind.value}")

    def coerce_key(self, key: Any) -> Optional[str]:
        """Coerce a mapping key to its JSON text, or ``None`` when it has none."""
        if isinstance(key, str):
            return key
        if key is True:
            return "true"
        if key is False:
            return "false"
        if key is None:
            return "null"
        if isinstance(key, int):
            return int.__repr__(key)
        if isinstance(key, float):
            return float.__repr__(key)
        return None
