import csv
import sys
import tempfile
import threading
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "sysfs"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from dvfstool_core.config import AppConfig
from dvfstool_core.scheduler import SampleScheduler
from dvfstool_core.sink import CSV_COLUMNS, CsvSampleSink
from dvfstool_sysfs import Absent, DeviceDiscovery, Present, SysfsAccessor
from dvfstool_telemetry import SensorSampler


def _put(root: Path, rel: str, text: str = "") -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def build_board(root: Path) -> AppConfig:
    """CPU policy, GPU devfreq and two thermal zones; no fan."""
    _put(root, "cpu/cpufreq/policy0/scaling_cur_freq", "1344000\n")
    _put(root, "cpu/cpufreq/policy0/scaling_min_freq", "729600\n")
    _put(root, "cpu/cpufreq/policy0/scaling_max_freq", "1728000\n")
    _put(root, "cpu/cpufreq/policy0/scaling_governor", "schedutil\n")
    _put(root, "devfreq/17000000.gpu/cur_freq", "918000000\n")
    _put(root, "devfreq/17000000.gpu/min_freq", "306000000\n")
    _put(root, "devfreq/17000000.gpu/max_freq", "1020000000\n")
    _put(root, "devfreq/17000000.gpu/governor", "nvhost_podgov\n")
    _put(root, "devfreq/17000000.gpu/available_frequencies", "306000000 408000000 1020000000\n")
    _put(root, "thermal/thermal_zone0/type", "cpu-thermal\n")
    _put(root, "thermal/thermal_zone0/temp", "45000\n")
    _put(root, "thermal/thermal_zone1/type", "gpu-thermal\n")
    _put(root, "thermal/thermal_zone1/temp", "62500\n")

    cfg = AppConfig()
    cfg.sysfs.cpufreq_root = str(root / "cpu" / "cpufreq")
    cfg.sysfs.cpu_legacy_dir = str(root / "cpu" / "cpu0" / "cpufreq")
    cfg.sysfs.devfreq_root = str(root / "devfreq")
    cfg.sysfs.thermal_root = str(root / "thermal")
    cfg.sysfs.fan_pwm_path = str(root / "pwm-fan" / "hwmon" / "hwmon1" / "pwm1")
    return cfg


class SensorSamplerTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        cfg = build_board(self.root)
        discovery = DeviceDiscovery(SysfsAccessor(), layout=cfg.layout(), keywords=cfg.keywords())
        self.devices = discovery.resolve()
        self.sampler = SensorSampler(discovery.accessor, self.devices)

    def tearDown(self):
        self._tmp.cleanup()

    def test_snapshot_fields(self):
        snap = self.sampler.read(123)
        self.assertEqual(snap.ts_ns, 123)
        self.assertEqual(snap.cpu.cur, Present("1344000"))
        self.assertEqual(snap.cpu.governor, Present("schedutil"))
        self.assertEqual(snap.gpu.max, Present("1020000000"))
        self.assertEqual(snap.thermal.cpu, Present("45000"))
        self.assertEqual(snap.thermal.gpu, Present("62500"))
        self.assertIs(snap.thermal.tj, Absent)

    def test_unresolved_fan_is_absent(self):
        self.assertFalse(self.devices.fan.found)
        snap = self.sampler.read(1)
        self.assertIs(snap.fan.cur_state, Absent)
        self.assertIs(snap.fan.max_state, Absent)
        self.assertIs(snap.fan.pwm, Absent)

    def test_attribute_vanishing_mid_run_degrades_one_field(self):
        (self.root / "cpu" / "cpufreq" / "policy0" / "scaling_governor").unlink()
        snap = self.sampler.read(2)
        self.assertIs(snap.cpu.governor, Absent)
        self.assertEqual(snap.cpu.cur, Present("1344000"))


class EndToEndTickTests(unittest.TestCase):
    def test_one_tick_row(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            cfg = build_board(root)
            discovery = DeviceDiscovery(SysfsAccessor(), layout=cfg.layout(), keywords=cfg.keywords())
            sampler = SensorSampler(discovery.accessor, discovery.resolve())
            out = root / "logs" / "run.csv"
            stop = threading.Event()
            scheduler = SampleScheduler(
                sampler=sampler,
                sink=CsvSampleSink(out),
                period_ms=1000,
                stop=stop,
                sleep=lambda _s: stop.set(),
                status_stream=_NullStream(),
            )
            report = scheduler.run()

            self.assertEqual(report.rows, 1)
            with out.open(newline="", encoding="utf-8") as fh:
                reader = csv.reader(fh)
                header = next(reader)
                rows = list(reader)

        self.assertEqual(tuple(header), CSV_COLUMNS)
        self.assertEqual(len(rows), 1)
        row = dict(zip(header, rows[0]))
        self.assertEqual(row["dt_ns"], "0")
        self.assertEqual(row["temp_cpu_mC"], "45000")
        self.assertEqual(row["temp_gpu_mC"], "62500")
        self.assertEqual(row["cpu_khz"], "1344000")
        self.assertEqual(row["gpu_governor"], "nvhost_podgov")
        self.assertEqual(row["fan_cur_state"], "")
        self.assertEqual(row["fan_max_state"], "")
        self.assertEqual(row["fan_pwm"], "")
        self.assertEqual(row["temp_soc0_mC"], "")


class _NullStream:
    def write(self, _text):
        return 0

    def flush(self):
        pass


if __name__ == "__main__":
    unittest.main()
