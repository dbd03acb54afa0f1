"""
Tests for the env-gated debug log (utils.debug_log).
"""

import json
import os
import sys
import tempfile
import unittest
from unittest import mock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pathlib import Path
from core.stack_manager import StackManager
from core.stack_models import DisplaySet, StackImage, Study
from utils.debug_log import debug_log, get_debug_log_path, is_debug_log_enabled


class TestDebugLog(unittest.TestCase):
    """Tests for debug_log enablement and output."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.log_path = Path(self._tmp.name) / "logs" / "debug.log"

    def tearDown(self):
        self._tmp.cleanup()

    def test_disabled_by_default(self):
        with mock.patch.dict(os.environ, {"DICOMSTACK_DEBUG_LOG_PATH": str(self.log_path)}, clear=False):
            os.environ.pop("DICOMSTACK_DEBUG_LOG", None)
            self.assertFalse(is_debug_log_enabled())
            debug_log("test", "nothing", {})
        self.assertFalse(self.log_path.exists())

    def test_path_override(self):
        with mock.patch.dict(os.environ, {"DICOMSTACK_DEBUG_LOG_PATH": str(self.log_path)}):
            self.assertEqual(get_debug_log_path(), self.log_path)

    def test_enabled_writes_json_lines(self):
        env = {"DICOMSTACK_DEBUG_LOG": "Yes", "DICOMSTACK_DEBUG_LOG_PATH": str(self.log_path)}
        with mock.patch.dict(os.environ, env):
            debug_log("test.location", "first", {"count": 1})
            debug_log("test.location", "second")
        lines = self.log_path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 2)
        first = json.loads(lines[0])
        self.assertEqual(first["location"], "test.location")
        self.assertEqual(first["message"], "first")
        self.assertEqual(first["data"], {"count": 1})
        self.assertEqual(json.loads(lines[1])["data"], {})

    def test_stack_manager_events_logged(self):
        env = {"DICOMSTACK_DEBUG_LOG": "1", "DICOMSTACK_DEBUG_LOG_PATH": str(self.log_path)}
        with mock.patch.dict(os.environ, env):
            manager = StackManager()
            image = StackImage(sop_instance_uid="1.2", num_frames=2)
            manager.make_and_add_stack(Study("1"), DisplaySet("ds1", images=[image]))
            manager.clear_stacks()
        messages = [json.loads(line)["message"]
                    for line in self.log_path.read_text(encoding="utf-8").splitlines()]
        self.assertEqual(messages, ["Multiframe image detected", "Stack stored", "Stacks cleared"])


if __name__ == '__main__':
    unittest.main()
