"""
Speech Engine Module

Port for the asynchronous speech engine used during read-aloud playback,
plus a pyttsx3 implementation that speaks through the system voices.

On Windows: Uses SAPI5 voices
On macOS: Uses NSSpeechSynthesizer
On Linux: Uses espeak
"""

import asyncio
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from docreader.readalong.voice_selector import VoiceCandidate
from docreader.utils.config import config
from docreader.utils import logger


class SpeechEngineError(Exception):
    """Raised when the speech engine fails to speak an utterance."""
    pass


class VoiceUnavailable(Exception):
    """Raised when no synthesis voice can be resolved."""
    pass


@dataclass(frozen=True)
class SpeechRequest:
    """One utterance to be spoken."""

    text: str
    voice: Optional[VoiceCandidate]  # None means the engine default
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0


EndCallback = Callable[[], None]
ErrorCallback = Callable[[SpeechEngineError], None]


class SpeechEngine(ABC):
    """
    Asynchronous speech engine contract.

    speak() returns immediately; exactly one of on_end or on_error is
    called later for each request unless it was cancelled, in which case
    either callback may still arrive late.
    """

    @abstractmethod
    def speak(self, request: SpeechRequest, on_end: EndCallback, on_error: ErrorCallback) -> None:
        ...

    @abstractmethod
    def cancel(self) -> None:
        """Stop the utterance in progress. Fire-and-forget."""
        ...

    @abstractmethod
    def list_voices(self) -> Tuple[VoiceCandidate, ...]:
        ...


def _voice_language(voice) -> str:
    """Return the first language tag of a pyttsx3 voice."""
    languages = getattr(voice, "languages", None) or []
    if not languages:
        return ""

    lang = languages[0]
    if isinstance(lang, bytes):
        # espeak prefixes the tag with a priority byte
        lang = lang.decode("utf-8", errors="ignore")
    return "".join(ch for ch in lang if ch.isprintable()).strip()


class Pyttsx3SpeechEngine(SpeechEngine):
    """
    Speak through pyttsx3 without blocking the event loop.

    pyttsx3's runAndWait() blocks, so each utterance runs on a single
    worker thread and its outcome is handed back to the asyncio loop
    that issued it.
    """

    def __init__(self, base_wpm: Optional[int] = None):
        """
        Initialize the pyttsx3 speech engine.

        Args:
            base_wpm: Words per minute at rate 1.0
        """
        self.base_wpm = base_wpm or config.base_wpm
        self._engine = None
        self._voices: Tuple[VoiceCandidate, ...] = ()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pyttsx3")

    def _get_engine(self):
        """Lazy load pyttsx3 engine."""
        if self._engine is None:
            try:
                import pyttsx3

                logger.debug("Loading pyttsx3 TTS engine...")
                self._engine = pyttsx3.init()

            except ImportError as e:
                raise SpeechEngineError(
                    "pyttsx3 not found. Install with: pip install pyttsx3"
                ) from e
            except Exception as e:
                raise SpeechEngineError(f"Failed to initialize pyttsx3: {e}") from e

        return self._engine

    def list_voices(self) -> Tuple[VoiceCandidate, ...]:
        """Return the system voices. System voices are always local."""
        if not self._voices:
            self._voices = self._executor.submit(self._query_voices).result()
        return self._voices

    def _query_voices(self) -> Tuple[VoiceCandidate, ...]:
        engine = self._get_engine()
        try:
            voices = engine.getProperty("voices")
        except Exception as e:
            raise SpeechEngineError(f"Failed to list pyttsx3 voices: {e}") from e

        return tuple(
            VoiceCandidate(
                name=v.name or v.id,
                lang=_voice_language(v),
                is_local=True,
                voice_id=v.id,
            )
            for v in voices
        )

    def speak(self, request: SpeechRequest, on_end: EndCallback, on_error: ErrorCallback) -> None:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, self._run_utterance, request)

        def deliver(done: "asyncio.Future") -> None:
            exc = done.exception()
            if exc is None:
                on_end()
            elif isinstance(exc, SpeechEngineError):
                on_error(exc)
            else:
                on_error(SpeechEngineError(str(exc) or type(exc).__name__))

        future.add_done_callback(deliver)

    def _run_utterance(self, request: SpeechRequest) -> None:
        engine = self._get_engine()

        if request.voice is not None and request.voice.voice_id:
            engine.setProperty("voice", request.voice.voice_id)

        # pyttsx3 has no portable pitch property; pitch is not applied
        engine.setProperty("rate", int(self.base_wpm * request.rate))
        engine.setProperty("volume", max(0.0, min(1.0, request.volume)))

        engine.say(request.text)
        engine.runAndWait()

    def cancel(self) -> None:
        if self._engine is not None:
            self._engine.stop()

    def close(self) -> None:
        """Stop speaking and release the worker thread."""
        self.cancel()
        self._executor.shutdown(wait=False)
