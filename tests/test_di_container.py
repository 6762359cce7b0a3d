"""Unit tests for container wiring."""
from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np

from chunked_speech.application.voice_style_table import VoiceStyleTable
from chunked_speech.config import EngineConfig
from chunked_speech.di_container import build_container, build_container_from_env
from chunked_speech.infrastructure.kokoro.onnx_model import OnnxSynthesisModel
from chunked_speech.infrastructure.kokoro.tokenizer import VocabTokenizer
from chunked_speech.infrastructure.voices.voice_loader import clear_voice_table_cache


class TestBuildContainer(unittest.TestCase):
    """Test cases for build_container."""

    def setUp(self):
        """Set up test fixtures."""
        self.tokenizer = MagicMock()
        self.tokenizer.tokenize.side_effect = lambda text: [0] * (len(text) + 2)
        self.model = MagicMock()
        self.model.sample_rate = 24_000
        self.model.synthesize.return_value = np.ones(50, dtype=np.float32)
        self.voices = VoiceStyleTable({"af_sky": np.zeros((10, 4), dtype=np.float32)})

    def test_injected_ports_are_used(self):
        """Test that injected ports end up in the orchestrator."""
        container = build_container(
            EngineConfig(token_budget=64),
            tokenizer=self.tokenizer,
            model=self.model,
            voices=self.voices,
        )

        samples = container.orchestrator.synthesize("Hello there.")

        self.assertEqual(len(samples), 50)
        self.assertIs(container.orchestrator.tokenizer, self.tokenizer)
        self.assertEqual(container.orchestrator.token_budget, 64)
        self.assertEqual(container.orchestrator.stitcher.sample_rate, 24_000)

    def test_default_adapters_built_from_config(self):
        """Test that missing ports are built from the configured files."""
        clear_voice_table_cache()
        with tempfile.TemporaryDirectory() as tmp:
            vocab_path = Path(tmp) / "config.json"
            vocab_path.write_text(json.dumps({"vocab": {"a": 1}}), encoding="utf-8")
            voices_path = Path(tmp) / "voices.npz"
            np.savez(voices_path, af_sky=np.zeros((3, 256), dtype=np.float32))

            container = build_container(
                EngineConfig(
                    vocab_path=str(vocab_path),
                    voices_path=str(voices_path),
                    model_path=str(Path(tmp) / "model.onnx"),
                )
            )
        clear_voice_table_cache()

        self.assertIsInstance(container.tokenizer, VocabTokenizer)
        self.assertIsInstance(container.model, OnnxSynthesisModel)
        self.assertEqual(container.voices.voice_ids, ["af_sky"])

    def test_from_env(self):
        """Test that build_container_from_env reads the environment."""
        with patch.dict(os.environ, {"CHUNKED_SPEECH_TOKEN_BUDGET": "128"}, clear=True):
            container = build_container_from_env(
                None,
                tokenizer=self.tokenizer,
                model=self.model,
                voices=self.voices,
            )

        self.assertEqual(container.config.token_budget, 128)
        self.assertEqual(container.orchestrator.token_budget, 128)


if __name__ == "__main__":
    unittest.main()
