"""
Performance timing utilities for the matching pipeline.

Provides a decorator and a context manager for measuring execution time
of pipeline stages with hierarchical output. Timing is collected only
while MatchConfig.enable_performance_logging is set.
"""

import time
import functools
from typing import Optional, List, Dict, Any
from contextlib import contextmanager
import threading

from .config import MatchConfig


class PerformanceTimer:
    """Thread-safe performance timer with hierarchical timing support."""

    def __init__(self):
        self._local = threading.local()
        self._lock = threading.Lock()
        self._results: List[Dict[str, Any]] = []

    def _get_stack(self) -> List[Dict[str, Any]]:
        """Get the current thread's timing stack."""
        if not hasattr(self._local, 'stack'):
            self._local.stack = []
        return self._local.stack

    @contextmanager
    def time_block(self, name: str):
        """Context manager for timing a code block.

        Args:
            name: Name of the code block being timed

        Yields:
            None
        """
        if not MatchConfig.enable_performance_logging:
            yield
            return

        stack = self._get_stack()
        timing_info = {
            'name': name,
            'thread': threading.current_thread().name,
            'depth': len(stack),
            'children': []
        }
        stack.append(timing_info)
        start_time = time.perf_counter()

        try:
            yield
        finally:
            timing_info['elapsed'] = time.perf_counter() - start_time
            stack.pop()

            # Worker threads start with an empty stack, so their blocks
            # land in the shared results list as roots
            if stack:
                stack[-1]['children'].append(timing_info)
            else:
                with self._lock:
                    self._results.append(timing_info)

    def results(self) -> List[Dict[str, Any]]:
        """Snapshot of the collected top-level timings."""
        with self._lock:
            return list(self._results)

    def clear(self):
        with self._lock:
            self._results = []

    def print_results(self):
        """Print formatted timing results with hierarchy."""
        if not MatchConfig.enable_performance_logging:
            return

        results = self.results()
        if not results:
            return

        print("\n" + "=" * 80)
        print("PERFORMANCE TIMING REPORT")
        print("=" * 80)

        def print_timing(timing: Dict[str, Any], parent_time: Optional[float] = None):
            elapsed = timing['elapsed']
            indent = "  " * timing['depth']
            label = f"{timing['name']} [{timing['thread']}]"

            if parent_time:
                percentage = (elapsed / parent_time) * 100
                print(f"{indent}{label}: {elapsed:.4f}s ({percentage:.1f}%)")
            else:
                print(f"{indent}{label}: {elapsed:.4f}s")

            for child in timing['children']:
                print_timing(child, elapsed)

        for result in results:
            print_timing(result)

        print("=" * 80 + "\n")
        self.clear()


# Global timer instance
_timer = PerformanceTimer()


def timed(func):
    """Decorator to time function execution.

    Args:
        func: Function to be timed

    Returns:
        Wrapped function
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if not MatchConfig.enable_performance_logging:
            return func(*args, **kwargs)

        with _timer.time_block(f"{func.__module__}.{func.__name__}"):
            return func(*args, **kwargs)

    return wrapper


def print_performance_report():
    """Print the accumulated performance timing report."""
    _timer.print_results()


def get_timer() -> PerformanceTimer:
    return _timer


@contextmanager
def time_block(name: str):
    """Context manager for timing arbitrary code blocks.

    Example:
        with time_block("Correlate term A"):
            ...
    """
    with _timer.time_block(name):
        yield
