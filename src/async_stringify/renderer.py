"""Synchronous JSON text rendering of resolved trees."""

import json
import logging
import math
from typing import Any, List, Optional, Set
from .classifier import NodeClassifier
from .types import (
    CircularReferenceError,
    NodeKind,
    Space,
    TextRendererInterface,
    UnrepresentableValueError,
    UNDEFINED,
)


MAX_INDENT = 10
COMPACT_SEPARATORS = (",", ":")
INDENTED_SEPARATORS = (",", ": ")


class JsonRenderer(TextRendererInterface):
    """
    Renders a resolved tree with ``json.dumps``.

    Layout follows ``JSON.stringify``: compact output has no whitespace at
    all, indented output puts one member per line with ``": "`` after keys.

    Serialization hook output reaches the renderer untouched by the
    transform engine, so the tree is first normalized with the same encoding
    rules the encoder applies: hooks are called once per value, ``UNDEFINED``
    and callables are dropped from objects and nulled in arrays, tuples
    become lists and non-finite floats become ``null``.
    """

    def __init__(self, ensure_ascii: bool = False, allow_nan: bool = False,
                 classifier: Optional[NodeClassifier] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the renderer.

        Args:
            ensure_ascii: Escape every non-ASCII character
            allow_nan: Emit ``NaN``/``Infinity`` literals instead of ``null``
            classifier: Optional NodeClassifier instance
            logger: Optional logger instance
        """
        self.ensure_ascii = ensure_ascii
        self.allow_nan = allow_nan
        self.logger = logger or logging.getLogger(__name__)
        self.classifier = classifier or NodeClassifier(self.logger)

    def render(self, tree: Any, space: Space = None) -> Optional[str]:
        """
        Render a resolved tree to JSON text.

        Args:
            tree: Tree produced by the transform engine
            space: Indentation as a space count or a literal indent string

        Returns:
            JSON text, or ``None`` when the root normalizes to nothing
            serializable
        """
        indent = self.normalize_space(space)
        tree = self.normalize(tree)
        if tree is UNDEFINED:
            return None
        return json.dumps(
            tree,
            indent=indent,
            separators=INDENTED_SEPARATORS if indent else COMPACT_SEPARATORS,
            ensure_ascii=self.ensure_ascii,
            allow_nan=self.allow_nan,
        )

    def normalize(self, tree: Any) -> Any:
        """
        Reduce *tree* to plain ``dict``/``list``/scalar values.

        Returns ``UNDEFINED`` when the root itself is ``UNDEFINED`` or a
        callable.

        Raises:
            CircularReferenceError: If hook output contains its own ancestor
            UnrepresentableValueError: If hook output holds e.g. a Decimal
        """
        return self._normalize(tree, set(), [], use_hooks=True)

    @staticmethod
    def normalize_space(space: Space) -> Optional[str]:
        """
        Turn an indentation directive into the indent string, or ``None``
        for compact output.

        Counts are clamped to 10 and strings cut to their first 10
        characters.
        """
        if space is None or isinstance(space, bool):
            return None
        if isinstance(space, (int, float)):
            if space != space:
                return None
            count = int(max(0, min(MAX_INDENT, space)))
            return " " * count if count >= 1 else None
        if isinstance(space, str):
            return space[:MAX_INDENT] or None
        raise TypeError(f"space must be an int or str, got {type(space).__name__}")

    def _normalize(self, value: Any, ancestors: Set[int], path: List[str], use_hooks: bool) -> Any:
        kind = self.classifier.classify(value, use_hooks=use_hooks)

        if kind is NodeKind.HOOKED:
            # The hook result is encoded as a plain value; its own hook is not called.
            return self._normalize(self.classifier.get_hook(value)(), ancestors, path, use_hooks=False)
        if kind is NodeKind.UNREPRESENTABLE:
            raise UnrepresentableValueError(value, path)
        if kind.is_elided:
            return UNDEFINED
        if kind is NodeKind.NUMBER and isinstance(value, float) and not math.isfinite(value):
            return value if self.allow_nan else None
        if not kind.is_container:
            return value

        marker = id(value)
        if marker in ancestors:
            raise CircularReferenceError(path)
        ancestors.add(marker)
        try:
            if kind is NodeKind.SEQUENCE:
                items = []
                for key, item in self.classifier.iter_items(value, kind):
                    item = self._normalize(item, ancestors, path + [key], use_hooks=True)
                    items.append(None if item is UNDEFINED else item)
                return items

            members = {}
            for key, item in self.classifier.iter_items(value, kind):
                item = self._normalize(item, ancestors, path + [key], use_hooks=True)
                if item is not UNDEFINED:
                    members[key] = item
            return members
        finally:
            ancestors.discard(marker)
