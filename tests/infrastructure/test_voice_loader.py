"""Unit tests for the voice table loader."""
from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import numpy as np

from chunked_speech.application.errors import VoiceTableError
from chunked_speech.infrastructure.voices.voice_loader import (
    clear_voice_table_cache,
    load_voice_table,
    load_voice_table_cached,
)
from chunked_speech.utils.logger import Logger


class TestVoiceLoader(unittest.TestCase):
    """Test cases for load_voice_table / load_voice_table_cached."""

    def setUp(self):
        """Set up test fixtures."""
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        clear_voice_table_cache()

    def tearDown(self):
        clear_voice_table_cache()
        self._tmp.cleanup()

    def test_load_npz_with_kokoro_shape(self):
        """Test that (N, 1, D) arrays in an npz archive are flattened to (N, D)."""
        path = self.tmp / "voices.npz"
        np.savez(
            path,
            af_sky=np.zeros((6, 1, 4), dtype=np.float32),
            af_bella=np.ones((6, 1, 4), dtype=np.float32),
        )
        logger = Logger()

        table = load_voice_table(path, style_dim=4, logger=logger)

        self.assertEqual(table.voice_ids, ["af_bella", "af_sky"])
        self.assertEqual(table.num_styles("af_sky"), 6)
        self.assertEqual(table.dimension("af_sky"), 4)
        self.assertIn("[Voices] Loaded 2 voices", logger.lines[0])

    def test_load_directory(self):
        """Test loading .npy and raw float32 .bin files from a directory."""
        np.save(self.tmp / "af_sky.npy", np.arange(12, dtype=np.float32).reshape(3, 4))
        np.arange(8, dtype="<f4").tofile(self.tmp / "am_adam.bin")
        (self.tmp / "README.txt").write_text("ignored", encoding="utf-8")

        table = load_voice_table(self.tmp, style_dim=4)

        self.assertEqual(table.voice_ids, ["af_sky", "am_adam"])
        self.assertEqual(table.num_styles("am_adam"), 2)
        np.testing.assert_array_equal(table.style_for("am_adam", 1), np.arange(4, 8))

    def test_missing_source(self):
        """Test that a missing path raises VoiceTableError."""
        with self.assertRaises(VoiceTableError):
            load_voice_table(self.tmp / "nope.npz")

    def test_unsupported_format(self):
        """Test that unknown file types raise VoiceTableError."""
        path = self.tmp / "voices.json"
        path.write_text("{}", encoding="utf-8")

        with self.assertRaises(VoiceTableError):
            load_voice_table(path)

    def test_empty_directory(self):
        """Test that a directory without voices is rejected."""
        with self.assertRaises(VoiceTableError):
            load_voice_table(self.tmp)

    def test_wrong_dimension(self):
        """Test that a style width other than style_dim is rejected."""
        np.save(self.tmp / "odd.npy", np.zeros((3, 5), dtype=np.float32))

        with self.assertRaises(VoiceTableError):
            load_voice_table(self.tmp, style_dim=4)

    def test_cache_returns_same_table(self):
        """Test that the process-wide cache loads a source once."""
        path = self.tmp / "voices.npz"
        np.savez(path, af_sky=np.zeros((2, 4), dtype=np.float32))

        first = load_voice_table_cached(path, style_dim=4)
        second = load_voice_table_cached(str(path), style_dim=4)

        self.assertIs(first, second)

    def test_cache_is_keyed_by_style_dim(self):
        """Test that a different style_dim reloads the source."""
        voices_dir = self.tmp / "voices"
        voices_dir.mkdir()
        np.arange(8, dtype="<f4").tofile(voices_dir / "af_sky.bin")

        wide = load_voice_table_cached(voices_dir, style_dim=4)
        narrow = load_voice_table_cached(voices_dir, style_dim=2)

        self.assertIsNot(wide, narrow)
        self.assertEqual(wide.styles("af_sky").shape, (2, 4))
        self.assertEqual(narrow.styles("af_sky").shape, (4, 2))
        self.assertIs(load_voice_table_cached(voices_dir, style_dim=4), wide)


if __name__ == "__main__":
    unittest.main()
