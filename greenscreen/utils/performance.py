"""性能统计工具模块.

记录合成流水线各阶段的耗时，用于性能分析。

Features:
    - 阶段耗时追踪（上下文管理器）
    - 计时装饰器
    - 按阶段汇总统计
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Iterator, Optional, TypeVar

from greenscreen.utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")


@dataclass
class PerformanceMetrics:
    """性能指标数据类.

    Attributes:
        operation: 操作名称
        start_time: 开始时间
        end_time: 结束时间
        duration_ms: 持续时间（毫秒）
        success: 是否成功
        error: 错误信息
    """

    operation: str
    start_time: float = 0.0
    end_time: float = 0.0
    duration_ms: float = 0.0
    success: bool = True
    error: Optional[str] = None


class PerformanceTracker:
    """性能追踪器.

    线程安全，可被并发的合成请求共用；只记录耗时，不持有任何像素数据。

    Example:
        >>> tracker = PerformanceTracker()
        >>> with tracker.track("extract"):
        ...     result = extract(grid, spec)
        >>> stats = tracker.get_stats("extract")
    """

    def __init__(self, max_history: int = 1000) -> None:
        """初始化追踪器.

        Args:
            max_history: 最大历史记录数
        """
        self._max_history = max_history
        self._history: list[PerformanceMetrics] = []
        self._lock = threading.Lock()

    @contextmanager
    def track(self, operation: str) -> Iterator[PerformanceMetrics]:
        """追踪操作耗时.

        Args:
            operation: 操作名称

        Yields:
            PerformanceMetrics 对象
        """
        metrics = PerformanceMetrics(operation=operation)
        metrics.start_time = time.perf_counter()

        try:
            yield metrics
            metrics.success = True
        except Exception as e:
            metrics.success = False
            metrics.error = str(e)
            raise
        finally:
            metrics.end_time = time.perf_counter()
            metrics.duration_ms = (metrics.end_time - metrics.start_time) * 1000
            self._record(metrics)
            logger.debug(f"{operation} 耗时: {metrics.duration_ms:.1f}ms")

    def _record(self, metrics: PerformanceMetrics) -> None:
        """记录性能指标."""
        with self._lock:
            self._history.append(metrics)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history :]

    def get_stats(self, operation: Optional[str] = None) -> dict[str, Any]:
        """获取性能统计.

        Args:
            operation: 操作名称过滤

        Returns:
            统计信息字典
        """
        with self._lock:
            history = self._history
            if operation:
                history = [m for m in history if m.operation == operation]

            if not history:
                return {
                    "count": 0,
                    "avg_duration_ms": 0,
                    "min_duration_ms": 0,
                    "max_duration_ms": 0,
                    "success_rate": 0,
                }

            durations = [m.duration_ms for m in history]
            successes = sum(1 for m in history if m.success)
            return {
                "count": len(history),
                "avg_duration_ms": sum(durations) / len(durations),
                "min_duration_ms": min(durations),
                "max_duration_ms": max(durations),
                "success_rate": successes / len(history) * 100,
            }

    def clear(self) -> None:
        """清空历史记录."""
        with self._lock:
            self._history.clear()


def timed(func: Callable[..., T]) -> Callable[..., T]:
    """计时装饰器.

    Example:
        >>> @timed
        ... def slow_function():
        ...     time.sleep(1)
    """

    @wraps(func)
    def wrapper(*args, **kwargs) -> T:
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = (time.perf_counter() - start) * 1000
            logger.debug(f"{func.__name__} 执行时间: {elapsed:.2f}ms")

    return wrapper


_performance_tracker: Optional[PerformanceTracker] = None


def get_performance_tracker() -> PerformanceTracker:
    """获取性能追踪器单例."""
    global _performance_tracker
    if _performance_tracker is None:
        _performance_tracker = PerformanceTracker()
    return _performance_tracker
