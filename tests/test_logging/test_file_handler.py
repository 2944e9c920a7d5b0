"""
Unit tests for file_handler.py

Tests output destinations including:
- Identifier resolution (stdout, stderr, files)
- File creation and rotation
- Backup age limit
- Fan-out with failing destinations
"""

import os
import sys
import time
import unittest
import tempfile
import shutil
from io import StringIO
from pathlib import Path

from assetlog.logging.config import RotationPolicy
from assetlog.logging.file_handler import (
    MultiFileHandler,
    RotatingFileHandler,
    StandardStreamHandler,
    build_sink,
    resolve_sink,
)


class FailingHandler:
    def __init__(self):
        self.closed = False

    def write(self, content):
        raise OSError("device not ready")

    def flush(self):
        raise OSError("device not ready")

    def close(self):
        self.closed = True


class RecordingHandler:
    def __init__(self):
        self.lines = []

    def write(self, content):
        self.lines.append(content)

    def flush(self):
        pass

    def close(self):
        pass


class TestResolveSink(unittest.TestCase):
    """Test output identifier resolution"""

    def test_standard_streams(self):
        stdout = resolve_sink("stdout")
        stderr = resolve_sink("stderr")

        self.assertIsInstance(stdout, StandardStreamHandler)
        self.assertEqual(stdout.stream_name, "stdout")
        self.assertIsInstance(stderr, StandardStreamHandler)
        self.assertEqual(stderr.stream_name, "stderr")

    def test_any_other_identifier_is_a_file(self):
        for identifier in ["app.log", "/var/log/app/app.log", "STDOUT", "stdout ", ""]:
            with self.subTest(identifier=identifier):
                self.assertIsInstance(resolve_sink(identifier), RotatingFileHandler)

    def test_default_rotation_policy(self):
        handler = resolve_sink("app.log")

        self.assertEqual(handler.max_bytes, 50 * 1024 * 1024)
        self.assertEqual(handler.backup_count, 1)
        self.assertEqual(handler.max_age_seconds, 24 * 60 * 60)

    def test_custom_rotation_policy(self):
        handler = resolve_sink("app.log", RotationPolicy(max_bytes=1024, backup_count=3, max_age_seconds=60))

        self.assertEqual(handler.max_bytes, 1024)
        self.assertEqual(handler.backup_count, 3)
        self.assertEqual(handler.max_age_seconds, 60)

    def test_resolution_does_not_touch_the_filesystem(self):
        temp_dir = tempfile.mkdtemp()
        try:
            log_file = Path(temp_dir) / "nested" / "app.log"
            resolve_sink(str(log_file))
            self.assertFalse(log_file.parent.exists())
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

    def test_build_sink_keeps_order(self):
        sink = build_sink(["stderr", "app.log", "stdout"])

        self.assertIsInstance(sink, MultiFileHandler)
        self.assertEqual(
            [type(handler) for handler in sink.handlers],
            [StandardStreamHandler, RotatingFileHandler, StandardStreamHandler],
        )


class TestStandardStreamHandler(unittest.TestCase):
    def test_writes_to_current_stream(self):
        handler = StandardStreamHandler("stdout")
        captured = StringIO()
        original_stdout = sys.stdout
        sys.stdout = captured
        try:
            handler.write("Test message\n")
            handler.close()
        finally:
            sys.stdout = original_stdout

        self.assertEqual(captured.getvalue(), "Test message\n")
        self.assertFalse(captured.closed)


class TestRotatingFileHandler(unittest.TestCase):
    """Test RotatingFileHandler class"""

    def setUp(self):
        """Set up test fixtures"""
        self.temp_dir = tempfile.mkdtemp()
        self.log_file = Path(self.temp_dir) / "test.log"

    def tearDown(self):
        """Clean up temp directory"""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_creates_log_directory_on_first_write(self):
        """Test that handler creates log directory if it doesn't exist"""
        nested_log = Path(self.temp_dir) / "subdir" / "logs" / "test.log"

        handler = RotatingFileHandler(str(nested_log))
        self.assertFalse(nested_log.parent.exists())
        handler.write("Test message\n")
        handler.close()

        self.assertTrue(nested_log.exists())

    def test_appends_to_existing_file(self):
        self.log_file.write_text("Existing entry\n", encoding="utf-8")

        with RotatingFileHandler(str(self.log_file)) as handler:
            handler.write("New entry\n")

        self.assertEqual(self.log_file.read_text(encoding="utf-8"), "Existing entry\nNew entry\n")

    def test_rotation_on_size(self):
        """Test that file rotates when max size is reached"""
        handler = RotatingFileHandler(str(self.log_file), max_bytes=100, backup_count=3)

        for i in range(20):
            handler.write(f"Log message {i} with some content\n")

        handler.close()

        self.assertTrue(Path(f"{self.log_file}.1").exists(), "Backup file .1 should exist")
        self.assertLess(self.log_file.stat().st_size, 100 + 40)

    def test_backup_count_limit(self):
        """Test that only backup_count backup files are kept"""
        handler = RotatingFileHandler(str(self.log_file), max_bytes=50, backup_count=2)

        for i in range(50):
            handler.write(f"Log message {i} with content to fill up space\n")

        handler.close()

        self.assertTrue(Path(f"{self.log_file}.1").exists(), "Backup .1 should exist")
        self.assertTrue(Path(f"{self.log_file}.2").exists(), "Backup .2 should exist")
        self.assertFalse(Path(f"{self.log_file}.3").exists(), "Backup .3 should not exist (exceeds backup_count)")

    def test_zero_backups_truncates(self):
        handler = RotatingFileHandler(str(self.log_file), max_bytes=10, backup_count=0)

        handler.write("first entry\n")
        handler.write("second entry\n")
        handler.close()

        self.assertEqual(self.log_file.read_text(encoding="utf-8"), "second entry\n")
        self.assertFalse(Path(f"{self.log_file}.1").exists())

    def test_expired_backups_are_removed(self):
        handler = RotatingFileHandler(str(self.log_file), max_bytes=10, backup_count=3, max_age_seconds=3600)

        handler.write("entry one\n")
        handler.write("entry two\n")  # rotates: .1 = entry one
        stale = time.time() - 7200
        os.utime(f"{self.log_file}.1", (stale, stale))

        handler.write("entry three\n")  # rotates: .2 = entry one (stale), .1 = entry two
        handler.close()

        self.assertFalse(Path(f"{self.log_file}.2").exists())
        self.assertEqual(Path(f"{self.log_file}.1").read_text(encoding="utf-8"), "entry two\n")
        self.assertEqual(self.log_file.read_text(encoding="utf-8"), "entry three\n")

    def test_zero_max_age_keeps_backups(self):
        handler = RotatingFileHandler(str(self.log_file), max_bytes=10, backup_count=3, max_age_seconds=0)

        handler.write("entry one\n")
        handler.write("entry two\n")
        stale = time.time() - 10 * 24 * 3600
        os.utime(f"{self.log_file}.1", (stale, stale))
        handler.write("entry three\n")
        handler.close()

        self.assertTrue(Path(f"{self.log_file}.2").exists())

    def test_flush(self):
        """Test flush method"""
        handler = RotatingFileHandler(str(self.log_file))

        handler.write("Test message\n")
        handler.flush()

        self.assertIn("Test message", self.log_file.read_text(encoding="utf-8"))

        handler.close()

    def test_unicode_content(self):
        """Test writing Unicode content"""
        with RotatingFileHandler(str(self.log_file)) as handler:
            handler.write("Message with émojis: 🎉 ✅ 🚀\n")
            handler.write("Chinese: 你好世界\n")

        content = self.log_file.read_text(encoding="utf-8")
        self.assertIn("🎉", content)
        self.assertIn("你好世界", content)

    def test_close_multiple_times(self):
        """Test that closing multiple times doesn't cause errors"""
        handler = RotatingFileHandler(str(self.log_file))
        handler.write("Test\n")

        handler.close()
        handler.close()

    def test_write_after_close_reopens(self):
        handler = RotatingFileHandler(str(self.log_file))
        handler.write("before\n")
        handler.close()
        handler.write("after\n")
        handler.close()

        self.assertEqual(self.log_file.read_text(encoding="utf-8"), "before\nafter\n")


class TestMultiFileHandler(unittest.TestCase):
    """Test MultiFileHandler class"""

    def setUp(self):
        """Set up test fixtures"""
        self.temp_dir = tempfile.mkdtemp()
        self.log_file1 = Path(self.temp_dir) / "test1.log"
        self.log_file2 = Path(self.temp_dir) / "test2.log"
        self.stderr = StringIO()
        self.original_stderr = sys.stderr
        sys.stderr = self.stderr

    def tearDown(self):
        """Clean up"""
        sys.stderr = self.original_stderr
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_writes_to_multiple_files(self):
        """Test that handler writes to all files"""
        multi = MultiFileHandler([RotatingFileHandler(str(self.log_file1)), RotatingFileHandler(str(self.log_file2))])
        multi.write("Test message\n")
        multi.close()

        self.assertIn("Test message", self.log_file1.read_text(encoding="utf-8"))
        self.assertIn("Test message", self.log_file2.read_text(encoding="utf-8"))

    def test_continues_on_handler_failure(self):
        """Test that failure in one handler doesn't stop others"""
        first, last = RecordingHandler(), RecordingHandler()
        multi = MultiFileHandler([first, FailingHandler(), last])

        multi.write("Test message\n")
        multi.flush()

        self.assertEqual(first.lines, ["Test message\n"])
        self.assertEqual(last.lines, ["Test message\n"])

    def test_failure_reported_once(self):
        multi = MultiFileHandler([FailingHandler()])

        multi.write("one\n")
        multi.write("two\n")

        self.assertEqual(self.stderr.getvalue().count("Logging error"), 1)
        self.assertIn("device not ready", self.stderr.getvalue())

    def test_close_reaches_every_handler(self):
        failing = FailingHandler()
        with MultiFileHandler([failing, RotatingFileHandler(str(self.log_file1))]) as multi:
            multi.write("Test message\n")

        self.assertTrue(failing.closed)
        self.assertTrue(self.log_file1.exists())

    def test_no_handlers_discards(self):
        multi = MultiFileHandler([])
        multi.write("Test message\n")
        multi.close()
        self.assertEqual(self.stderr.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
