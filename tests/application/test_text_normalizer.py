"""Unit tests for text normalization."""
from __future__ import annotations

import unittest

from chunked_speech.application.text_normalizer import TextNormalizer, normalize_text


class TestTextNormalizer(unittest.TestCase):
    """Test cases for normalize_text / TextNormalizer."""

    def setUp(self):
        """Set up test fixtures."""
        self.normalizer = TextNormalizer()

    def test_dash_and_smart_quotes_become_ascii(self):
        """Test that typographic dashes and quotes are replaced."""
        text = "Don’t worry—it’s “fine”"

        result = self.normalizer.normalize(text)

        self.assertEqual(result, "Don't worry-it's \"fine\"")
        for glyph in "—–‘’“”":
            self.assertNotIn(glyph, result)

    def test_en_dash(self):
        """Test that an en dash becomes a hyphen."""
        self.assertEqual(normalize_text("Price: $10–$20"), "Price: $10-$20")

    def test_ellipsis_glyph(self):
        """Test that the ellipsis glyph becomes three periods."""
        self.assertEqual(normalize_text("Loading…"), "Loading...")

    def test_whitespace_collapsed_and_trimmed(self):
        """Test that runs of spaces collapse and ends are trimmed."""
        self.assertEqual(normalize_text("  Multiple   spaces   "), "Multiple spaces")

    def test_newlines_and_tabs_become_spaces(self):
        """Test that tabs and newlines are converted to single spaces."""
        self.assertEqual(normalize_text("Line1\nLine2\nLine3"), "Line1 Line2 Line3")
        self.assertEqual(normalize_text("\tTabbed\ttext"), "Tabbed text")

    def test_nfc_composition(self):
        """Test that decomposed glyphs are composed."""
        self.assertEqual(normalize_text("cafe\u0301"), "caf\u00e9")

    def test_control_characters_removed(self):
        """Test that output contains no control or format characters."""
        result = normalize_text("a\x07b\u200bc\x00d")

        self.assertEqual(result, "a bc d")

    def test_empty_text(self):
        """Test that empty and whitespace-only input normalize to empty."""
        self.assertEqual(normalize_text(""), "")
        self.assertEqual(normalize_text(" \n\t "), "")

    def test_idempotent(self):
        """Test that normalizing twice equals normalizing once."""
        samples = [
            "Hello world",
            "  “Quoted” — text…  ",
            "e\u200b\u0301 and cafe\u0301",
            "Line1\r\nLine2  end",
            "Alert! Warning: Check logs. Details available.",
            "It's 21:22",
            "‘’‚‛′″‒―",
        ]
        for sample in samples:
            once = normalize_text(sample)
            self.assertEqual(normalize_text(once), once, msg=repr(sample))


if __name__ == "__main__":
    unittest.main()
