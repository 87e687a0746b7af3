import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "sysfs"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from dvfstool_core.sink import CSV_COLUMNS, CsvSampleSink, snapshot_row
from dvfstool_sysfs import Present
from dvfstool_telemetry import FanReading, FreqReading, SensorSnapshot, ThermalReading


def _snapshot(ts_ns: int = 10) -> SensorSnapshot:
    return SensorSnapshot(
        ts_ns=ts_ns,
        cpu=FreqReading(cur=Present("1344000"), governor=Present("schedutil")),
        gpu=FreqReading(cur=Present("918000000")),
        fan=FanReading(pwm=Present("128")),
        thermal=ThermalReading(tj=Present("51000")),
    )


class SnapshotRowTests(unittest.TestCase):
    def test_column_order_and_empty_fields(self):
        row = snapshot_row(_snapshot(), dt_ns=100_000_000)
        self.assertEqual(len(row), len(CSV_COLUMNS))
        fields = dict(zip(CSV_COLUMNS, row))
        self.assertEqual(fields["ts_ns"], "10")
        self.assertEqual(fields["dt_ns"], "100000000")
        self.assertEqual(fields["cpu_khz"], "1344000")
        self.assertEqual(fields["cpu_min_khz"], "")
        self.assertEqual(fields["cpu_governor"], "schedutil")
        self.assertEqual(fields["gpu_hz"], "918000000")
        self.assertEqual(fields["fan_pwm"], "128")
        self.assertEqual(fields["temp_tj_mC"], "51000")
        self.assertEqual(fields["temp_cpu_mC"], "")


class CsvSampleSinkTests(unittest.TestCase):
    def test_flushes_every_ten_rows(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "run.csv"
            sink = CsvSampleSink(path, flush_every=10)
            sink.open()
            for i in range(9):
                sink.write(_snapshot(i), 0)
            self.assertEqual(len(path.read_text(encoding="utf-8").splitlines()), 1)
            sink.write(_snapshot(9), 0)
            self.assertEqual(len(path.read_text(encoding="utf-8").splitlines()), 11)
            self.assertTrue(sink.is_open)
            sink.close()
            self.assertFalse(sink.is_open)
            sink.close()
            sink.flush()

    def test_created_fresh_each_run(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "run.csv"
            for _ in range(2):
                sink = CsvSampleSink(path)
                sink.open()
                sink.write(_snapshot(), 0)
                sink.close()
            lines = path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 2)
        self.assertEqual(lines[0], ",".join(CSV_COLUMNS))

    def test_write_before_open_raises(self):
        sink = CsvSampleSink(Path("/tmp/never-opened.csv"))
        with self.assertRaises(RuntimeError):
            sink.write(_snapshot(), 0)


if __name__ == "__main__":
    unittest.main()
