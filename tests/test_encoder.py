import sys
import unittest
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from qrcode.exceptions import DataOverflowError  # noqa: E402

from sqrc.encoder import (  # noqa: E402
    Matrix,
    encode,
    finder_origins,
    in_finder_zone,
    to_byte_payload,
)


class TestPayload(unittest.TestCase):
    def test_utf8(self):
        self.assertEqual(to_byte_payload("héllo"), "héllo".encode("utf-8"))

    def test_lone_surrogate_is_kept(self):
        self.assertEqual(to_byte_payload("\ud800"), b"\xed\xa0\x80")


class TestEncode(unittest.TestCase):
    def test_auto_version_picks_smallest(self):
        m = encode("hello", ecc="M")
        self.assertEqual(m.version, 1)
        self.assertEqual(m.module_count, 21)

    def test_fixed_version(self):
        m = encode("hello", ecc="L", version=5)
        self.assertEqual(m.version, 5)
        self.assertEqual(m.module_count, 37)

    def test_zero_version_means_auto(self):
        self.assertEqual(encode("hello", version=0), encode("hello"))

    def test_overflow_propagates(self):
        with self.assertRaises(DataOverflowError):
            encode("x" * 200, ecc="H", version=1)

    def test_deterministic(self):
        self.assertEqual(encode("https://example.com/"), encode("https://example.com/"))

    def test_finder_pattern_present(self):
        m = encode("https://example.com/")
        n = m.module_count
        for row, col in finder_origins(n):
            self.assertTrue(m.is_dark(row, col))
            self.assertFalse(m.is_dark(row + 1, col + 1))
            self.assertTrue(m.is_dark(row + 3, col + 3))


class TestMatrix(unittest.TestCase):
    def test_out_of_range(self):
        m = Matrix([[True, False], [False, True]])
        with self.assertRaises(IndexError):
            m.is_dark(2, 0)
        with self.assertRaises(IndexError):
            m.is_dark(0, -1)

    def test_must_be_square(self):
        with self.assertRaises(ValueError):
            Matrix([[True, False], [False]])

    def test_finder_zones(self):
        self.assertEqual(finder_origins(21), ((0, 0), (0, 14), (14, 0)))
        self.assertTrue(in_finder_zone(6, 6, 21))
        self.assertFalse(in_finder_zone(7, 7, 21))
        self.assertTrue(in_finder_zone(0, 20, 21))
        self.assertFalse(in_finder_zone(20, 20, 21))


if __name__ == "__main__":
    unittest.main()
