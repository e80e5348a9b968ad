"""Performance profiler for stringify operations."""

import json
import time
import psutil
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict
from contextlib import contextmanager
from .types import TraversalStats


@dataclass
class PerformanceMetrics:
    """Performance metrics for one stringify call."""
    operation_name: str
    start_time: float
    end_time: float
    duration: float
    output_size: int
    memory_start_mb: float
    memory_end_mb: float
    transform_calls: int
    containers_entered: int
    max_depth: int


@dataclass
class ProfilingSession:
    """Start state of one profiled operation."""
    operation_name: str
    start_time: float
    start_memory: Optional[float] = None
    finished: bool = False


class PerformanceProfiler:
    """
    Profiler recording wall time, process memory and traversal counters.

    Each operation gets its own ``ProfilingSession``, so overlapping
    operations can be profiled together; each finished session is appended
    to ``metrics_history``.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the performance profiler.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.metrics_history: List[PerformanceMetrics] = []

    @contextmanager
    def profile_operation(self, operation_name: str):
        """
        Context manager for profiling operations.

        Yields the session. The body may pass it to ``stop_profiling`` to
        report output size and counters; otherwise the session is closed
        with empty counters on exit.
        """
        session = self.start_profiling(operation_name)
        try:
            yield session
        finally:
            if not session.finished:
                self.stop_profiling(session)

    def start_profiling(self, operation_name: str) -> ProfilingSession:
        """Start profiling an operation and return its session."""
        session = ProfilingSession(
            operation_name=operation_name,
            start_time=time.time(),
            start_memory=self._rss_mb(),
        )
        self.logger.debug(f"Started profiling: {operation_name}")
        return session

    def stop_profiling(self, session: ProfilingSession, output_size: int = 0,
                       stats: Optional[TraversalStats] = None) -> PerformanceMetrics:
        """
        Stop profiling a session and return metrics.

        Args:
            session: Session returned by ``start_profiling``
            output_size: Length of the rendered text
            stats: Traversal counters of the profiled call

        Returns:
            PerformanceMetrics object with collected data
        """
        if session.finished:
            raise ValueError(f"Profiling session already stopped: {session.operation_name}")
        session.finished = True

        stats = stats or TraversalStats()
        end_time = time.time()
        end_memory = self._rss_mb()
        if end_memory is None:
            end_memory = session.start_memory

        metrics = PerformanceMetrics(
            operation_name=session.operation_name,
            start_time=session.start_time,
            end_time=end_time,
            duration=end_time - session.start_time,
            output_size=output_size,
            memory_start_mb=session.start_memory or 0.0,
            memory_end_mb=end_memory or 0.0,
            transform_calls=stats.transform_calls,
            containers_entered=stats.containers_entered,
            max_depth=stats.max_depth,
        )
        self.metrics_history.append(metrics)

        self.logger.info(f"Performance Summary - {session.operation_name}:")
        self.logger.info(f"  Duration: {metrics.duration:.4f}s")
        self.logger.info(f"  Transform calls: {metrics.transform_calls}")
        self.logger.info(f"  Max depth: {metrics.max_depth}")
        self.logger.info(f"  Memory: {metrics.memory_start_mb:.1f} -> {metrics.memory_end_mb:.1f} MB")

        return metrics

    def get_performance_summary(self) -> Dict[str, Any]:
        """
        Get summary of all performance metrics.

        Returns:
            Dictionary with performance summary
        """
        if not self.metrics_history:
            return {"total_operations": 0}

        count = len(self.metrics_history)
        total_duration = sum(m.duration for m in self.metrics_history)
        total_calls = sum(m.transform_calls for m in self.metrics_history)

        return {
            "total_operations": count,
            "total_duration": total_duration,
            "total_transform_calls": total_calls,
            "total_output_chars": sum(m.output_size for m in self.metrics_history),
            "average_duration": total_duration / count,
            "calls_per_second": total_calls / total_duration if total_duration > 0 else 0.0,
            "max_depth": max(m.max_depth for m in self.metrics_history),
        }

    def export_metrics(self, format: str = "json") -> str:
        """
        Export performance metrics in specified format.

        Args:
            format: Export format ("json", "summary")

        Returns:
            Formatted metrics string
        """
        if format == "json":
            return json.dumps([asdict(m) for m in self.metrics_history], indent=2)

        elif format == "summary":
            summary = self.get_performance_summary()
            if summary["total_operations"] == 0:
                return "Performance Summary: no operations recorded"
            lines = [
                "Performance Summary:",
                f"  Total Operations: {summary['total_operations']}",
                f"  Total Duration: {summary['total_duration']:.4f}s",
                f"  Transform Calls: {summary['total_transform_calls']}",
                f"  Output Size: {summary['total_output_chars']} chars",
                f"  Max Depth: {summary['max_depth']}",
            ]
            return "\n".join(lines)

        else:
            raise ValueError(f"Unsupported export format: {format}")

    def _rss_mb(self) -> Optional[float]:
        try:
            return psutil.Process().memory_info().rss / 1024 / 1024
        except psutil.Error as e:
            self.logger.warning(f"Memory sampling failed: {e}")
            return None
