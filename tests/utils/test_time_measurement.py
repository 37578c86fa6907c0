"""Unit tests for the time_measurement module."""

import threading
import time
import unittest

from mapcluster.utils.time_measurement import TimeMeasurement, TimeRecorder


class TestTimeMeasurement(unittest.TestCase):
    """Test cases for TimeMeasurement and TimeRecorder classes."""

    def test_time_measurement_dataclass(self):
        measurement = TimeMeasurement(
            span_name="test_span",
            wall_time=1.5,
            process_user_time=0.1,
            process_system_time=0.05,
            children_user_time=0.2,
            children_system_time=0.1,
        )

        self.assertEqual(measurement.span_name, "test_span")
        self.assertEqual(measurement.wall_time, 1.5)
        self.assertEqual(measurement.children_system_time, 0.1)

    def test_recorder_initialization(self):
        recorder = TimeRecorder()
        self.assertEqual(recorder.measurements, [])

    def test_simple_sleep_block(self):
        """Wall time covers the sleep; CPU time stays small."""
        recorder = TimeRecorder()

        with recorder.measure("sleep_test"):
            time.sleep(0.2)

        (measurement,) = recorder.measurements
        self.assertEqual(measurement.span_name, "sleep_test")
        self.assertGreaterEqual(measurement.wall_time, 0.2)
        self.assertLess(measurement.process_user_time, 0.1)
        self.assertEqual(measurement.children_user_time, 0.0)

    def test_cpu_intensive_block(self):
        recorder = TimeRecorder()

        with recorder.measure("cpu_test"):
            total = 0
            for i in range(1000000):
                total += i ** 2

        measurement = recorder.measurements[0]
        self.assertGreater(measurement.wall_time, 0.0)
        self.assertGreaterEqual(measurement.process_user_time, 0.0)

    def test_exception_in_measured_block(self):
        """Measurements are recorded even if the block raises."""
        recorder = TimeRecorder()

        with self.assertRaises(ValueError):
            with recorder.measure("exception_test"):
                time.sleep(0.05)
                raise ValueError("Test exception")

        self.assertEqual(len(recorder.measurements), 1)
        self.assertGreaterEqual(recorder.measurements[0].wall_time, 0.05)

    def test_nested_measurements(self):
        recorder = TimeRecorder()

        with recorder.measure("outer_span"):
            time.sleep(0.05)
            with recorder.measure("inner_span"):
                time.sleep(0.05)

        inner, outer = recorder.measurements  # Inner completes first
        self.assertEqual(inner.span_name, "inner_span")
        self.assertEqual(outer.span_name, "outer_span")
        self.assertGreater(outer.wall_time, inner.wall_time)

    def test_spans_filters_by_name(self):
        recorder = TimeRecorder()
        for name in ("recompute", "load", "recompute"):
            with recorder.measure(name):
                pass

        self.assertEqual(len(recorder.spans("recompute")), 2)
        self.assertEqual(recorder.spans("missing"), [])

    def test_measurements_from_worker_threads(self):
        recorder = TimeRecorder()

        def work():
            for _ in range(50):
                with recorder.measure("worker"):
                    pass

        threads = [threading.Thread(target=work) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(recorder.spans("worker")), 200)


if __name__ == "__main__":
    unittest.main()
