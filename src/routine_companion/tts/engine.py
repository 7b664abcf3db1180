# src/routine_companion/tts/engine.py

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

XTTS_MODEL = "tts_models/multilingual/multi-dataset/xtts_v2"


@dataclass(frozen=True, slots=True)
class TTSConfig:
    speaker_wav: str | None
    speaker_name: str
    language: str

    @classmethod
    def from_settings(cls, settings: Any) -> TTSConfig:
        return cls(
            speaker_wav=(getattr(settings, "speaker_wav", "") or None),
            speaker_name=getattr(settings, "xtts_speaker_name", "Ana Florence"),
            language=getattr(settings, "xtts_language", "en"),
        )


class TTSEngine:
    """
    Best-effort speech output (implements the Speaker port).

    - Optional dependencies: torch + TTS + sounddevice are imported lazily;
      when they are missing the engine disables itself and speak() is a no-op.
    - Synthesis and playback happen in a worker thread, so speak() never blocks
      the event loop or the overdue poller.
    """

    def __init__(self, enabled: bool, settings: Any = None) -> None:
        self.enabled = bool(enabled)
        self._cfg = TTSConfig.from_settings(settings)

        self._queue: queue.Queue[str | None] | None = None
        self._worker: threading.Thread | None = None
        self._model: Any = None
        self._sd: Any = None
        self._sample_rate = 24000
        self._stop_requested = False

        if not self.enabled:
            logger.info("TTS disabled.")
            return

        logger.info("TTS enabling: importing dependencies (torch/TTS/sounddevice)... this may take a while.")
        try:
            import sounddevice as sd  # type: ignore
            import torch  # type: ignore
            from TTS.api import TTS  # type: ignore
        except Exception as e:
            self.enabled = False
            logger.warning("TTS dependencies are missing; speech disabled. Install the 'tts' extra. Error: %r", e)
            return

        try:
            device = "cuda" if torch.cuda.is_available() else "cpu"
            logger.info("Initializing XTTS (device=%s). First run may download large model files.", device)
            self._model = TTS(XTTS_MODEL).to(device)
            try:
                self._sample_rate = int(self._model.synthesizer.output_sample_rate)
            except Exception:
                self._sample_rate = 24000
        except Exception as e:
            self.enabled = False
            logger.error("Failed to initialize XTTS model: %r", e)
            return

        self._sd = sd
        self._queue = queue.Queue()
        self._worker = threading.Thread(target=self._run, name="tts-worker", daemon=True)
        self._worker.start()
        logger.info("TTS ready (sample_rate=%s).", self._sample_rate)

    def _synthesize(self, text: str) -> Any:
        wav = (self._cfg.speaker_wav or "").strip()
        if wav and Path(wav).is_file():
            return self._model.tts(text=text, language=self._cfg.language, speaker_wav=wav)
        if wav:
            logger.warning("speaker_wav %s does not exist; using speaker name.", wav)
        return self._model.tts(text=text, language=self._cfg.language, speaker=self._cfg.speaker_name)

    def _run(self) -> None:
        assert self._queue is not None
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                text = " ".join(item.split())
                if not text:
                    continue
                try:
                    audio = self._synthesize(text)
                    self._sd.play(audio, self._sample_rate)
                    self._sd.wait()
                except Exception as e:
                    logger.error("TTS synthesis/playback failed: %r", e)
            finally:
                self._queue.task_done()

    def speak(self, text: str) -> None:
        """Queue text for playback (no-op if disabled)."""
        if not self.enabled or self._queue is None:
            return
        self._queue.put(text)

    def shutdown(self) -> None:
        if not self.enabled or self._queue is None or self._stop_requested:
            return
        self._stop_requested = True
        logger.info("Stopping TTS worker...")
        self._queue.put(None)
        self._queue.join()
        if self._worker is not None:
            self._worker.join(timeout=2.0)
        logger.info("TTS stopped.")
