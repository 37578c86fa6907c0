"""Wall-clock and CPU time spans for recompute passes and CLI stages."""

import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass


@dataclass
class TimeMeasurement:
    """A single measured span."""

    span_name: str
    wall_time: float
    process_user_time: float
    process_system_time: float
    children_user_time: float
    children_system_time: float


class TimeRecorder:
    """Collects ``TimeMeasurement`` entries; safe to use from worker threads."""

    def __init__(self) -> None:
        self.measurements: list[TimeMeasurement] = []
        self._lock = threading.Lock()

    @contextmanager
    def measure(self, span_name: str):
        start_wall = time.perf_counter()
        start_times = os.times()
        try:
            yield
        finally:
            end_times = os.times()
            measurement = TimeMeasurement(
                span_name=span_name,
                wall_time=time.perf_counter() - start_wall,
                process_user_time=end_times.user - start_times.user,
                process_system_time=end_times.system - start_times.system,
                children_user_time=end_times.children_user - start_times.children_user,
                children_system_time=end_times.children_system
                - start_times.children_system,
            )
            with self._lock:
                self.measurements.append(measurement)

    def spans(self, span_name: str) -> list[TimeMeasurement]:
        with self._lock:
            return [m for m in self.measurements if m.span_name == span_name]
