"""Regression tests for raw-key decoding.

Covers ESC timing, arrow and function-key sequences, and control-key tokens.
"""

import os
import time
import unittest

from lazyetcd.input import reader as input_mod


class ReadKeyTests(unittest.TestCase):
    def setUp(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def tearDown(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def _keys(self, data: bytes, count: int) -> list[str]:
        read_fd, write_fd = os.pipe()
        try:
            os.write(write_fd, data)
            return [input_mod.read_key(read_fd, timeout_ms=20) for _ in range(count)]
        finally:
            os.close(read_fd)
            os.close(write_fd)

    def test_single_escape_returns_promptly(self) -> None:
        started = time.monotonic()
        keys = self._keys(b"\x1b", 1)
        elapsed = time.monotonic() - started

        self.assertEqual(keys, ["ESC"])
        self.assertLess(elapsed, 0.2)

    def test_arrow_and_navigation_sequences(self) -> None:
        self.assertEqual(self._keys(b"\x1b[A", 1), ["UP"])
        self.assertEqual(self._keys(b"\x1b[5~", 1), ["PAGE_UP"])
        self.assertEqual(self._keys(b"\x1b[Z", 1), ["SHIFT_TAB"])
        self.assertEqual(self._keys(b"\x1b[1;5B", 1), ["DOWN"])

    def test_f1_variants(self) -> None:
        self.assertEqual(self._keys(b"\x1bOP", 1), ["F1"])
        self.assertEqual(self._keys(b"\x1b[11~", 1), ["F1"])

    def test_escape_does_not_swallow_following_printable_key(self) -> None:
        self.assertEqual(self._keys(b"\x1bq", 2), ["ESC", "q"])

    def test_control_keys(self) -> None:
        self.assertEqual(
            self._keys(b"\x03\r\n\x7f\t\x15\x0e", 7),
            ["CTRL_C", "ENTER_CR", "ENTER_LF", "BACKSPACE", "TAB", "CTRL_U", "CTRL_N"],
        )

    def test_utf8_character_is_one_token(self) -> None:
        self.assertEqual(self._keys("é".encode("utf-8"), 1), ["é"])

    def test_timeout_returns_empty_token(self) -> None:
        self.assertEqual(self._keys(b"", 1), [""])


if __name__ == "__main__":
    unittest.main()
