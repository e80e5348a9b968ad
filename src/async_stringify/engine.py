"""Recursive tree-transformation engine."""

import inspect
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Set
from .classifier import NodeClassifier
from .types import (
    CircularReferenceError,
    NodeKind,
    TransformEngineInterface,
    Transform,
    TraversalStats,
    UnrepresentableValueError,
)


class _Traversal:
    """State of one ``resolve`` call: the ancestor set and its counters."""

    def __init__(self, transform: Transform, classifier: NodeClassifier, stats: TraversalStats):
        self.transform = transform
        self.classifier = classifier
        self.stats = stats
        self.ancestors: Set[int] = set()

    @contextmanager
    def descend(self, container: Any, path: List[str]) -> Iterator[None]:
        """Hold *container* in the ancestor set while its children resolve."""
        marker = id(container)
        if marker in self.ancestors:
            raise CircularReferenceError(path)
        self.ancestors.add(marker)
        self.stats.containers_entered += 1
        self.stats.max_depth = max(self.stats.max_depth, len(self.ancestors))
        try:
            yield
        finally:
            self.ancestors.discard(marker)

    async def resolve_node(self, context: Any, key: str, value: Any, path: List[str]) -> Any:
        self.stats.transform_calls += 1
        replaced = self.transform(context, key, value)
        if inspect.isawaitable(replaced):
            replaced = await replaced

        kind = self.classifier.classify(replaced)

        if kind is NodeKind.UNREPRESENTABLE:
            raise UnrepresentableValueError(replaced, path)
        if kind is NodeKind.HOOKED:
            # Hook output is taken as-is: no transform calls, no cycle check.
            return self.classifier.get_hook(replaced)()
        if not kind.is_container:
            return replaced

        with self.descend(replaced, path):
            if kind is NodeKind.SEQUENCE:
                items = []
                for child_key, child in self.classifier.iter_items(replaced, kind):
                    resolved = await self.resolve_node(replaced, child_key, child, path + [child_key])
                    if self.classifier.classify(resolved).is_elided:
                        resolved = None
                    items.append(resolved)
                return items

            members: Dict[str, Any] = {}
            for child_key, child in self.classifier.iter_items(replaced, kind):
                resolved = await self.resolve_node(replaced, child_key, child, path + [child_key])
                if not self.classifier.classify(resolved).is_elided:
                    members[child_key] = resolved
            return members


class TransformEngine(TransformEngineInterface):
    """
    Walks a value graph applying an async transform at every node.

    Children are resolved depth-first and strictly one after another, so
    transform calls happen in document order. Each call to ``resolve`` gets
    its own ancestor set; a container may appear any number of times in the
    tree as long as it is never its own ancestor.
    """

    def __init__(self, classifier: Optional[NodeClassifier] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the engine.

        Args:
            classifier: Optional NodeClassifier instance
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.classifier = classifier or NodeClassifier(self.logger)

    async def resolve(self, root: Any, transform: Transform,
                      stats: Optional[TraversalStats] = None) -> Any:
        """
        Resolve *root* into a JSON-representable tree.

        The transform is first called on the root with key ``""`` and a
        synthetic ``{"": root}`` context, then on every descendant with the
        owning container as context.

        Args:
            root: Value to resolve
            transform: ``(context, key, value)`` returning the replacement,
                either directly or as an awaitable
            stats: Optional TraversalStats filled in during the walk

        Returns:
            The resolved tree; may be ``UNDEFINED`` or a callable when the
            root itself resolves to one

        Raises:
            CircularReferenceError: If a container is its own ancestor
            UnrepresentableValueError: If a transform returns an
                unrepresentable scalar
        """
        traversal = _Traversal(transform, self.classifier, stats if stats is not None else TraversalStats())
        return await traversal.resolve_node({"": root}, "", root, [])
