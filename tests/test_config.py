"""Tests for configuration validation, logging setup and audio frame conversion."""

import logging

import numpy as np
import pytest

from pitchcoach.audio_capture import MicrophoneSource, to_mono_float32
from pitchcoach.config import Config, _float_env, _int_env
from pitchcoach.logging_setup import setup_logging


class TestConfig:

    def test_gemini_requires_key(self, monkeypatch):
        monkeypatch.setattr(Config, "ANALYZER_TYPE", "gemini")
        monkeypatch.setattr(Config, "GEMINI_API_KEY", None)

        assert Config.validate() == ["GEMINI_API_KEY (required when ANALYZER_TYPE=gemini)"]

    def test_openai_requires_key(self, monkeypatch):
        monkeypatch.setattr(Config, "ANALYZER_TYPE", "OpenAI")
        monkeypatch.setattr(Config, "OPENAI_API_KEY", "")

        assert Config.validate() == ["OPENAI_API_KEY (required when ANALYZER_TYPE=openai)"]

    def test_valid(self, monkeypatch):
        monkeypatch.setattr(Config, "ANALYZER_TYPE", "gemini")
        monkeypatch.setattr(Config, "GEMINI_API_KEY", "key")
        monkeypatch.setattr(Config, "MAX_INFLIGHT", 3)

        assert Config.validate() == []

    def test_inflight_must_be_positive(self, monkeypatch):
        monkeypatch.setattr(Config, "GEMINI_API_KEY", "key")
        monkeypatch.setattr(Config, "OPENAI_API_KEY", "key")
        monkeypatch.setattr(Config, "MAX_INFLIGHT", 0)

        assert Config.validate() == ["MAX_INFLIGHT (must be at least 1)"]

    def test_numeric_env_parsing(self, monkeypatch):
        monkeypatch.setenv("PITCH_TEST_INT", "42")
        monkeypatch.setenv("PITCH_TEST_FLOAT", "not-a-number")

        assert _int_env("PITCH_TEST_INT", 1) == 42
        assert _float_env("PITCH_TEST_FLOAT", 0.5) == 0.5
        assert _int_env("PITCH_TEST_UNSET", 7) == 7


class TestLoggingSetup:

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        httpx_level = logging.getLogger("httpx").level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        logging.getLogger("httpx").setLevel(httpx_level)

    def test_level_and_single_handler(self):
        setup_logging("debug")
        setup_logging("debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_httpx_quieted(self):
        setup_logging("INFO")

        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("chatty")

        assert logging.getLogger().level == logging.INFO


class TestAudioCapture:

    def test_stereo_int16_to_mono_float(self):
        indata = np.array([[16384, -100], [-32768, 5]], dtype=np.int16)

        mono = to_mono_float32(indata)

        assert mono.dtype == np.float32
        assert mono.tolist() == [0.5, -1.0]

    def test_float_input_is_copied_and_clipped(self):
        indata = np.array([[0.25], [1.5]], dtype=np.float32)

        mono = to_mono_float32(indata)
        indata[0, 0] = 0.9

        assert mono.tolist() == [0.25, 1.0]

    def test_numeric_device_string(self):
        assert MicrophoneSource(device="3").device == 3
        assert MicrophoneSource(device="USB Mic").device == "USB Mic"

    def test_stop_without_start_is_noop(self):
        source = MicrophoneSource()
        source.stop()
        assert source.running is False
