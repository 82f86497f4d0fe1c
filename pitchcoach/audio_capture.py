"""Microphone capture via sounddevice, feeding the segmenter."""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np

from pitchcoach.errors import AudioSourceError
from pitchcoach.segmenter import FrameCallback

logger = logging.getLogger(__name__)


def list_audio_devices():
    """
    Returns available INPUT audio devices.
    This is used by the API for device selection.
    """
    import sounddevice as sd

    devices = []
    try:
        for idx, d in enumerate(sd.query_devices()):
            if int(d.get("max_input_channels", 0)) <= 0:
                continue

            devices.append(
                {
                    "index": idx,
                    "name": d.get("name", f"Device {idx}"),
                    "max_input_channels": int(d.get("max_input_channels", 0)),
                    "default_samplerate": int(d.get("default_samplerate", 0) or 0),
                }
            )
    except Exception as e:
        return {
            "ok": False,
            "error": repr(e),
            "devices": [],
        }

    return {
        "ok": True,
        "devices": devices,
    }


def to_mono_float32(indata: np.ndarray) -> np.ndarray:
    """
    Convert sounddevice callback 'indata' into a mono float32 copy in [-1, 1].
    Uses the first channel only (avoids phase-cancellation artifacts from stereo input).
    """
    x = np.asarray(indata)

    if x.ndim == 2 and x.shape[1] >= 1:
        mono = x[:, 0]
    else:
        mono = x.reshape(-1)

    if mono.dtype == np.int16:
        f = mono.astype(np.float32) / 32768.0
    else:
        f = mono.astype(np.float32)

    # Copy: PortAudio reuses the callback buffer.
    return np.clip(f, -1.0, 1.0).copy()


def _parse_device(device: Optional[Union[int, str]]) -> Optional[Union[int, str]]:
    if isinstance(device, str) and device.isdigit():
        return int(device)
    return device


class MicrophoneSource:
    """One exclusively-owned input stream per session."""

    def __init__(
        self,
        device: Optional[Union[int, str]] = None,
        sample_rate: int = 24000,
        blocksize: int = 4096,
    ) -> None:
        self.device = _parse_device(device)
        self.sample_rate = int(sample_rate)
        self.blocksize = int(blocksize)
        self._stream = None
        self.status_messages = 0

    @property
    def running(self) -> bool:
        return self._stream is not None

    def start(self, on_frames: FrameCallback) -> None:
        """Open the device and start delivering frames.

        Raises:
            AudioSourceError: If no input device can be opened
        """
        if self._stream is not None:
            return

        try:
            import sounddevice as sd
        except OSError as e:
            raise AudioSourceError(f"Audio backend unavailable: {e}") from e

        def audio_cb(indata, frames, time_info, status):
            if status:
                self.status_messages += 1
                logger.debug(f"[AUDIO] sd_status: {status}")
            try:
                on_frames(to_mono_float32(indata))
            except Exception as e:
                logger.error(f"[AUDIO] callback error: {e!r}")

        try:
            stream = sd.InputStream(
                device=self.device,
                samplerate=self.sample_rate,
                channels=1,
                dtype="float32",
                blocksize=self.blocksize,
                callback=audio_cb,
            )
            stream.start()
        except Exception as e:
            raise AudioSourceError(f"No audio input available for analysis: {e}") from e

        self._stream = stream
        logger.info(f"[AUDIO] capture start device={self.device} sr={self.sample_rate} bs={self.blocksize}")

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning(f"[AUDIO] error closing stream: {e!r}")
        logger.info("[AUDIO] capture stopped")
