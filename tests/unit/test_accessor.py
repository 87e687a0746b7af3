import errno
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "sysfs"))

from dvfstool_sysfs import Absent, Present, SysfsAccessor


class ReadTextTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.accessor = SysfsAccessor()

    def tearDown(self):
        self._tmp.cleanup()

    def _file(self, name, text):
        path = self.root / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_missing_file_is_absent_without_retry_delay(self):
        with mock.patch("dvfstool_sysfs.accessor.time.sleep") as sleep:
            value = self.accessor.read_text(str(self.root / "nope" / "scaling_cur_freq"))
        self.assertIs(value, Absent)
        self.assertFalse(value)
        sleep.assert_not_called()

    def test_trailing_whitespace_stripped_interior_kept(self):
        cases = {
            "1344000\n": "1344000",
            "1344000\r\n": "1344000",
            "schedutil \t\n\n": "schedutil",
            "  306000000 408000000\t1020000000 \r\n\t": "  306000000 408000000\t1020000000",
            "a\n b\n": "a\n b",
            "\n\n": "",
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(self.accessor.read_text(self._file("attr", raw)), Present(expected))

    def test_reads_at_most_4095_bytes(self):
        path = self._file("big", "x" * 5000)
        value = self.accessor.read_text(path)
        self.assertIsInstance(value, Present)
        self.assertEqual(len(value.text), 4095)

    def test_eagain_on_open_is_retried(self):
        path = self._file("cur_freq", "918000000\n")
        fd = os.open(path, os.O_RDONLY)
        eagain = BlockingIOError(errno.EAGAIN, "Resource temporarily unavailable")
        with mock.patch("dvfstool_sysfs.accessor.os.open", side_effect=[eagain, eagain, fd]), mock.patch(
            "dvfstool_sysfs.accessor.time.sleep"
        ) as sleep:
            value = self.accessor.read_text(path)
        self.assertEqual(value, Present("918000000"))
        self.assertEqual(sleep.call_count, 2)

    def test_eagain_on_read_reopens_and_retries(self):
        path = self._file("cur_state", "1\n")
        eagain = BlockingIOError(errno.EAGAIN, "Resource temporarily unavailable")
        with mock.patch("dvfstool_sysfs.accessor.os.read", side_effect=[eagain, b"1\n"]) as reader, mock.patch(
            "dvfstool_sysfs.accessor.time.sleep"
        ) as sleep:
            value = self.accessor.read_text(path)
        self.assertEqual(value, Present("1"))
        self.assertEqual(reader.call_count, 2)
        self.assertEqual(sleep.call_count, 1)

    def test_eagain_retries_exhausted_is_absent(self):
        eagain = BlockingIOError(errno.EAGAIN, "Resource temporarily unavailable")
        with mock.patch("dvfstool_sysfs.accessor.os.open", side_effect=eagain) as opener, mock.patch(
            "dvfstool_sysfs.accessor.time.sleep"
        ):
            value = self.accessor.read_text("/sys/class/devfreq/17000000.gpu/cur_freq")
        self.assertIs(value, Absent)
        self.assertEqual(opener.call_count, 3)

    def test_permission_denied_is_absent_without_retry(self):
        denied = PermissionError(errno.EACCES, "Permission denied")
        with mock.patch("dvfstool_sysfs.accessor.os.open", side_effect=denied) as opener, mock.patch(
            "dvfstool_sysfs.accessor.time.sleep"
        ) as sleep:
            value = self.accessor.read_text("/sys/kernel/debug/clk/clk_summary")
        self.assertIs(value, Absent)
        self.assertEqual(opener.call_count, 1)
        sleep.assert_not_called()


class WriteTextTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.accessor = SysfsAccessor()

    def tearDown(self):
        self._tmp.cleanup()

    def _empty(self, name):
        path = self.root / name
        path.write_text("", encoding="utf-8")
        return path

    def test_appends_single_newline(self):
        path = self._empty("scaling_min_freq")
        self.assertTrue(self.accessor.write_text(str(path), "1344000"))
        self.assertEqual(path.read_text(encoding="utf-8"), "1344000\n")

    def test_does_not_double_newline(self):
        path = self._empty("min_freq")
        self.assertTrue(self.accessor.write_text(str(path), "918000000\n"))
        self.assertEqual(path.read_text(encoding="utf-8"), "918000000\n")

    def test_missing_target_reports_false(self):
        self.assertFalse(self.accessor.write_text(str(self.root / "missing" / "max_freq"), "1"))

    def test_directory_target_reports_false(self):
        target = self.root / "governor"
        target.mkdir()
        self.assertFalse(self.accessor.write_text(str(target), "nvhost_podgov"))


if __name__ == "__main__":
    unittest.main()
