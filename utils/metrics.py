"""
Performance metrics and timing framework for the Talkscriber client.

Provides decorators and utilities for measuring and logging performance metrics
such as handshake latency, time to first audio chunk and playback duration.
"""

import time
import functools
import logging
from typing import Dict, Any, Optional, List, Callable
from dataclasses import dataclass, field
from datetime import datetime
from collections import defaultdict, deque
from enum import Enum
import threading

from .config import MetricsConfig, get_config, should_log_performance, get_slow_operation_threshold

logger = logging.getLogger(__name__)

class MetricType(Enum):
    """Types of metrics to track"""
    DURATION = "duration"
    COUNTER = "counter"

class OperationType(Enum):
    """Standard operation types for consistent naming"""
    HANDSHAKE = "handshake"
    AUDIO_UPLOAD = "audio_upload"
    TRANSCRIPTION = "transcription"
    TTS_FIRST_CHUNK = "tts_first_chunk"
    TTS_STREAMING = "tts_streaming"
    PLAYBACK = "playback"
    FILE_IO = "file_io"

@dataclass
class PerformanceMetric:
    """Individual performance metric data"""
    operation: str
    metric_type: MetricType
    value: float
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

class MetricsCollector:
    """Aggregates operation durations and counters (e.g. bytes uploaded).

    Recent raw metrics are kept in a bounded deque; aggregates cover the
    whole process lifetime until `clear()`.
    """

    def __init__(self, max_metrics: int = 10000):
        self.max_metrics = max_metrics
        self.metrics: deque = deque(maxlen=max_metrics)
        self.aggregated_stats: Dict[str, Dict[str, Any]] = defaultdict(lambda: {
            'count': 0,
            'total_time': 0.0,
            'min_time': float('inf'),
            'max_time': 0.0,
            'avg_time': 0.0
        })
        self.counters: Dict[str, Dict[str, float]] = defaultdict(lambda: {'events': 0, 'total': 0.0})
        self._lock = threading.Lock()

    def record_metric(self, metric: PerformanceMetric) -> None:
        """Record a performance metric"""
        with self._lock:
            self.metrics.append(metric)

            if metric.metric_type == MetricType.COUNTER:
                counter = self.counters[metric.operation]
                counter['events'] += 1
                counter['total'] += metric.value
                return

            stats = self.aggregated_stats[metric.operation]
            stats['count'] += 1
            stats['total_time'] += metric.value
            stats['min_time'] = min(stats['min_time'], metric.value)
            stats['max_time'] = max(stats['max_time'], metric.value)
            stats['avg_time'] = stats['total_time'] / stats['count']

    def record_duration(self, operation: str, duration_ms: float,
                        metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record a duration metric"""
        self.record_metric(PerformanceMetric(
            operation=operation,
            metric_type=MetricType.DURATION,
            value=duration_ms,
            metadata=metadata or {}
        ))

    def increment(self, operation: str, amount: float = 1,
                  metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record a counter metric"""
        self.record_metric(PerformanceMetric(
            operation=operation,
            metric_type=MetricType.COUNTER,
            value=amount,
            metadata=metadata or {}
        ))

    def get_stats(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Get aggregated statistics"""
        with self._lock:
            if operation:
                return dict(self.aggregated_stats.get(operation, {}))
            return {op: dict(stats) for op, stats in self.aggregated_stats.items()}

    def get_counters(self) -> Dict[str, Dict[str, float]]:
        """Counter totals keyed by operation"""
        with self._lock:
            return {op: dict(counter) for op, counter in self.counters.items()}

    def get_recent_metrics(self, operation: Optional[str] = None,
                           limit: int = 100) -> List[PerformanceMetric]:
        """Most recent metrics, optionally only those of `operation`"""
        with self._lock:
            recent = [m for m in self.metrics if operation is None or m.operation == operation]
        return recent[-limit:]

    def clear(self) -> None:
        with self._lock:
            self.metrics.clear()
            self.aggregated_stats.clear()
            self.counters.clear()

    def get_summary_report(self) -> str:
        """Session timings and counters as printable text"""
        stats = self.get_stats()
        counters = self.get_counters()
        if not stats and not counters:
            return "No metrics collected"

        lines = ["Performance Summary:", "=" * 50]
        for operation, data in sorted(stats.items()):
            lines.append(f"{operation}: {data['count']}x, avg {data['avg_time']:.2f}ms "
                         f"(min {data['min_time']:.2f}ms, max {data['max_time']:.2f}ms)")
        for operation, counter in sorted(counters.items()):
            lines.append(f"{operation}: {counter['events']} events, {counter['total']:,.0f} total")
        return "\n".join(lines)

# Global metrics collector instance
_global_collector = MetricsCollector(max_metrics=MetricsConfig.from_env().max_metrics)

def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector"""
    return _global_collector

def timing_decorator(operation: Optional[str] = None):
    """
    Decorator to automatically time a synchronous function.

    Args:
        operation: Operation name (defaults to the qualified function name)
    """
    def decorator(func: Callable):
        op_name = operation or f"{func.__module__}.{func.__name__}"

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            metadata = {}
            try:
                result = func(*args, **kwargs)
                metadata['success'] = True
                return result
            except Exception as e:
                metadata['success'] = False
                metadata['error'] = str(e)
                raise
            finally:
                if get_config().metrics.enabled:
                    _global_collector.record_duration(op_name, (time.time() - start_time) * 1000, metadata)

        return wrapper

    return decorator

def log_performance(operation: str, duration_ms: float,
                    metadata: Optional[Dict[str, Any]] = None,
                    log_level: int = logging.INFO) -> None:
    """
    Log performance metrics with structured data.

    Args:
        operation: Operation name
        duration_ms: Duration in milliseconds
        metadata: Additional metadata
        log_level: Logging level
    """
    metrics_config = get_config().metrics
    if metrics_config.enabled:
        _global_collector.record_duration(operation, duration_ms, metadata)
    if not should_log_performance():
        return

    extra_data = {
        'operation': operation,
        'duration_ms': duration_ms
    }
    if metadata:
        extra_data.update(metadata)

    if duration_ms < 100:
        level_indicator = "⚡"  # Fast
    elif duration_ms < 1000:
        level_indicator = "⏱️"   # Normal
    else:
        level_indicator = "🐌"  # Slow

    if duration_ms >= get_slow_operation_threshold():
        log_level = max(log_level, logging.WARNING)

    logger.log(log_level, f"{level_indicator} {operation} completed in {duration_ms:.2f}ms", extra=extra_data)

def start_timer() -> float:
    """Start a timer and return the start time"""
    return time.time()

def end_timer(start_time: float) -> float:
    """End a timer and return duration in milliseconds"""
    return (time.time() - start_time) * 1000

class TimerContext:
    """Reusable timer for operations spanning several callbacks"""

    def __init__(self, operation: str, metadata: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.metadata = metadata or {}
        self.start_time: Optional[float] = None
        self.checkpoints: List[tuple] = []

    def start(self) -> 'TimerContext':
        """Start the timer"""
        self.start_time = time.time()
        self.checkpoints = []
        return self

    def checkpoint(self, name: str) -> 'TimerContext':
        """Add a checkpoint"""
        if self.start_time is not None:
            elapsed = (time.time() - self.start_time) * 1000
            self.checkpoints.append((name, elapsed))
        return self

    def end(self) -> float:
        """End timing and log the result"""
        if self.start_time is None:
            return 0.0

        duration_ms = (time.time() - self.start_time) * 1000

        if self.checkpoints:
            self.metadata['checkpoints'] = dict(self.checkpoints)

        log_performance(self.operation, duration_ms, self.metadata)
        self.start_time = None
        return duration_ms
