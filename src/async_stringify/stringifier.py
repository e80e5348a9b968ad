"""Main async stringifier implementation."""

import logging
from typing import Any, Optional
from .classifier import NodeClassifier
from .engine import TransformEngine
from .renderer import JsonRenderer
from .profiler import PerformanceProfiler
from .transforms import identity
from .types import (
    Space,
    StringifyResult,
    TextRendererInterface,
    Transform,
    TransformEngineInterface,
    TraversalStats,
)


class AsyncStringifier:
    """
    Converts a value to JSON text, running an async transform on every node.

    The whole tree is resolved first (all transform calls awaited in document
    order), then handed once to the renderer.
    """

    def __init__(self,
                 renderer: Optional[TextRendererInterface] = None,
                 engine: Optional[TransformEngineInterface] = None,
                 logger: Optional[logging.Logger] = None,
                 ensure_ascii: bool = False,
                 allow_nan: bool = False,
                 enable_profiling: bool = False):
        """
        Initialize the stringifier.

        Args:
            renderer: Text renderer; defaults to a JsonRenderer built from
                ``ensure_ascii`` and ``allow_nan``
            engine: Transform engine; defaults to TransformEngine
            logger: Optional logger instance
            ensure_ascii: Escape non-ASCII characters in the output
            allow_nan: Emit NaN/Infinity literals instead of null
            enable_profiling: Record a PerformanceMetrics entry per call
        """
        self.logger = logger or logging.getLogger(__name__)
        self.classifier = NodeClassifier(self.logger)
        self.renderer = renderer or JsonRenderer(
            ensure_ascii=ensure_ascii,
            allow_nan=allow_nan,
            classifier=self.classifier,
            logger=self.logger,
        )
        self.engine = engine or TransformEngine(self.classifier, self.logger)
        self.profiler = PerformanceProfiler(self.logger) if enable_profiling else None

    async def stringify(self, value: Any, transform: Optional[Transform] = None,
                        space: Space = None) -> Optional[str]:
        """
        Convert *value* to JSON text.

        Args:
            value: Value to serialize
            transform: ``(context, key, value)`` replacer, usually a
                coroutine function; ``None`` keeps every value
            space: Indentation as a space count (capped at 10) or an
                indent string (first 10 characters)

        Returns:
            The JSON text, or ``None`` when the root resolves to
            ``UNDEFINED`` or a function

        Raises:
            CircularReferenceError: If the value graph contains a cycle
            UnrepresentableValueError: If a transform yields e.g. a Decimal
        """
        result = await self.stringify_with_stats(value, transform, space)
        return result.text

    async def stringify_with_stats(self, value: Any, transform: Optional[Transform] = None,
                                   space: Space = None) -> StringifyResult:
        """Like ``stringify`` but also return the traversal counters."""
        if self.profiler is None:
            return await self._stringify(value, transform, space)

        with self.profiler.profile_operation("stringify") as session:
            result = await self._stringify(value, transform, space)
            self.profiler.stop_profiling(
                session,
                output_size=len(result.text) if result.text is not None else 0,
                stats=result.stats,
            )
        return result

    async def _stringify(self, value: Any, transform: Optional[Transform],
                         space: Space) -> StringifyResult:
        stats = TraversalStats()
        self.logger.debug(f"Starting stringify of {type(value).__name__}")

        try:
            tree = await self.engine.resolve(value, transform or identity, stats)
        except Exception as e:
            self.logger.error(f"Stringify failed after {stats.transform_calls} transform calls: {e}")
            raise

        if self.classifier.classify(tree).is_elided:
            self.logger.debug("Root resolved to an unserializable value")
            return StringifyResult(text=None, stats=stats)

        text = self.renderer.render(tree, space)
        self.logger.debug(
            f"Stringify finished: {stats.transform_calls} transform calls, "
            f"{stats.containers_entered} containers, {len(text or '')} chars"
        )
        return StringifyResult(text=text, stats=stats)


_default_stringifier: Optional[AsyncStringifier] = None


def get_stringifier() -> AsyncStringifier:
    """Get the shared default stringifier instance."""
    global _default_stringifier
    if _default_stringifier is None:
        _default_stringifier = AsyncStringifier()
    return _default_stringifier


async def stringify(value: Any, transform: Optional[Transform] = None,
                    space: Space = None) -> Optional[str]:
    """Convert *value* to JSON text with the default stringifier."""
    return await get_stringifier().stringify(value, transform, space)
