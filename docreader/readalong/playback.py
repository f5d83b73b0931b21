"""
Playback Controller Module

Drives the speech engine sentence by sentence and keeps the highlight
cursor, navigation and speed changes in step with the audio.

Every utterance is tagged with a token (sentence index, request serial).
Completion and error callbacks carrying any other token are stale and are
discarded, so cancellation never depends on the engine honouring it.
"""

import asyncio
import math
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Sequence, Tuple

from docreader.readalong.events import (
    EventChannel,
    Highlight,
    PlaybackError,
    PlaybackStatus,
    PlaybackStatusChanged,
    Progress,
)
from docreader.readalong.sentence_splitter import Sentence
from docreader.readalong.speech_engine import (
    SpeechEngine,
    SpeechEngineError,
    SpeechRequest,
    VoiceUnavailable,
)
from docreader.readalong.voice_selector import VoiceCandidate, select_voice
from docreader.utils.config import config
from docreader.utils import logger

Token = Tuple[int, int]


@dataclass(frozen=True)
class PlaybackState:
    """Snapshot of the controller."""

    current_index: int
    status: PlaybackStatus
    rate: float


class AsyncioScheduler:
    """Run delayed callbacks on the running asyncio loop."""

    def call_later(self, delay: float, callback: Callable[[], None]):
        return asyncio.get_running_loop().call_later(delay, callback)


class PlaybackController:
    """
    Read-aloud state machine.

    States:
    - idle: no document, or not started since the last load
    - playing: one utterance in flight or about to be issued
    - paused: stopped by the user or by an engine error
    - finished: every sentence has been read (index == sentence count)
    """

    def __init__(
        self,
        engine: SpeechEngine,
        events: Optional[EventChannel] = None,
        announcer: Optional[Callable[[str], None]] = None,
        scheduler=None,
        rate: Optional[float] = None,
        pitch: Optional[float] = None,
        volume: Optional[float] = None,
        settle_delay: Optional[float] = None,
    ):
        """
        Initialize the playback controller.

        Args:
            engine: Speech engine to drive
            events: Channel receiving highlight, progress and status events
            announcer: Receives plain-text assistive announcements
            scheduler: Object with call_later(delay, callback) returning a
                cancellable handle (defaults to the running asyncio loop)
            rate: Speech rate multiplier
            pitch: Speech pitch
            volume: Speech volume (0.0 to 1.0)
            settle_delay: Seconds between cancelling and issuing speech
        """
        self.engine = engine
        self.events = events or EventChannel()
        self.announcer = announcer or (lambda message: None)
        self.scheduler = scheduler or AsyncioScheduler()
        self.rate = _check_rate(rate if rate is not None else config.speech_rate)
        self.pitch = pitch if pitch is not None else config.speech_pitch
        self.volume = volume if volume is not None else config.speech_volume
        self.settle_delay = settle_delay if settle_delay is not None else config.settle_delay

        self._sentences: Tuple[Sentence, ...] = ()
        self._index = 0
        self._status = PlaybackStatus.IDLE
        self._serial = 0
        self._active: Optional[Token] = None
        self._pending = None
        self._voice_warned = False
        self.last_error: Optional[SpeechEngineError] = None

    @property
    def state(self) -> PlaybackState:
        return PlaybackState(current_index=self._index, status=self._status, rate=self.rate)

    @property
    def status(self) -> PlaybackStatus:
        return self._status

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def sentences(self) -> Tuple[Sentence, ...]:
        return self._sentences

    @property
    def is_playing(self) -> bool:
        return self._status == PlaybackStatus.PLAYING

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    def load(self, sentences: Sequence[Sentence]) -> None:
        """Replace the sentence sequence and return to idle."""
        self._sentences = tuple(sentences)
        self.reset()

    def start(self) -> bool:
        """
        Start or resume reading.

        Returns:
            False when there is nothing to read
        """
        if not self._sentences:
            logger.warning("No document loaded")
            self.announcer("No document loaded. Please upload a file first.")
            return False

        if self._status == PlaybackStatus.PLAYING:
            return True

        if self._status == PlaybackStatus.FINISHED:
            self._index = 0

        self.last_error = None
        self._set_status(PlaybackStatus.PLAYING)
        self._speak_current()
        return True

    def pause(self) -> None:
        """Stop reading, cancelling any speech in flight."""
        if self._status != PlaybackStatus.PLAYING:
            return

        self._cancel_speech()
        self._set_status(PlaybackStatus.PAUSED)

    def toggle(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.start()

    def seek(self, delta: int) -> bool:
        """
        Move one sentence forward (+1) or back (-1).

        Returns:
            False when the move would leave the document
        """
        if delta not in (1, -1):
            raise ValueError(f"seek delta must be +1 or -1, got {delta}")

        target = self._index + delta
        if not 0 <= target < len(self._sentences):
            return False

        if self._status == PlaybackStatus.PLAYING:
            self._cancel_speech()
            self._index = target
            self._emit_position()
            self._schedule_speak()
        else:
            self._index = target
            if self._status == PlaybackStatus.FINISHED:
                self._set_status(PlaybackStatus.PAUSED)
            self._emit_position()

        return True

    def set_rate(self, rate: float) -> None:
        """Change the speech rate, restarting the current sentence if reading."""
        self.rate = _check_rate(rate)

        if self._status == PlaybackStatus.PLAYING:
            self._cancel_speech()
            self._schedule_speak()

    def reset(self) -> None:
        """Cancel all speech and rewind to the first sentence."""
        self._cancel_speech()
        self._index = 0
        self.last_error = None
        self._set_status(PlaybackStatus.IDLE)
        self.events.emit(Progress(index=0, total=len(self._sentences)))

    # ------------------------------------------------------------------
    # Speech engine callbacks
    # ------------------------------------------------------------------

    def _on_end(self, token: Token) -> None:
        if not self._is_current(token):
            logger.debug(f"Discarding stale completion for sentence {token[0]}")
            return

        self._active = None
        self._index += 1
        self.events.emit(Progress(index=self._index, total=len(self._sentences)))

        if self._index >= len(self._sentences):
            self._set_status(PlaybackStatus.FINISHED)
            self.announcer("Document reading complete.")
        else:
            self._schedule_speak()

    def _on_error(self, token: Token, error: SpeechEngineError) -> None:
        if not self._is_current(token):
            logger.debug(f"Discarding stale error for sentence {token[0]}: {error}")
            return

        self._active = None
        self._fail(error)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_current(self, token: Token) -> bool:
        return self._status == PlaybackStatus.PLAYING and token == self._active

    def _speak_current(self) -> None:
        sentence = self._sentences[self._index]

        self._serial += 1
        token = (self._index, self._serial)
        self._active = token

        try:
            voice = self._choose_voice()
        except Exception as e:
            self._active = None
            self._fail(_as_engine_error(e))
            return

        request = SpeechRequest(
            text=sentence.text,
            voice=voice,
            rate=self.rate,
            pitch=self.pitch,
            volume=self.volume,
        )

        self._emit_position()
        logger.debug(f"Speaking sentence {self._index + 1}/{len(self._sentences)}")

        try:
            self.engine.speak(
                request,
                on_end=partial(self._on_end, token),
                on_error=partial(self._on_error, token),
            )
        except Exception as e:
            if self._active == token:
                self._active = None
                self._fail(_as_engine_error(e))

    def _choose_voice(self) -> Optional[VoiceCandidate]:
        """Select a voice from the engine's current list, or None for its default."""
        try:
            voice = select_voice(self.engine.list_voices())
            if voice is None:
                raise VoiceUnavailable("No synthesis voices available")
            return voice
        except VoiceUnavailable as e:
            if not self._voice_warned:
                logger.warning(f"{e}; using the engine default voice")
                self._voice_warned = True
            return None

    def _schedule_speak(self) -> None:
        """Issue speech for the current index after the settle delay."""
        self._cancel_pending()
        self._pending = self.scheduler.call_later(self.settle_delay, self._fire_pending)

    def _fire_pending(self) -> None:
        self._pending = None
        if self._status == PlaybackStatus.PLAYING and self._active is None:
            self._speak_current()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _cancel_speech(self) -> None:
        self._cancel_pending()
        if self._active is not None:
            self._active = None
            self.engine.cancel()

    def _fail(self, error: SpeechEngineError) -> None:
        self._cancel_pending()
        self.last_error = error
        logger.error(f"Speech synthesis error: {error}")
        self._set_status(PlaybackStatus.PAUSED)
        self.events.emit(PlaybackError(message=str(error)))
        self.announcer(f"Error: {error}")

    def _emit_position(self) -> None:
        self.events.emit(Highlight(index=self._index))
        self.events.emit(Progress(index=self._index, total=len(self._sentences)))

    def _set_status(self, status: PlaybackStatus) -> None:
        self._status = status
        self.events.emit(PlaybackStatusChanged(status=status))


def _as_engine_error(error: Exception) -> SpeechEngineError:
    """Engine adapters may leak driver exceptions; surface them as engine errors."""
    if isinstance(error, SpeechEngineError):
        return error
    return SpeechEngineError(str(error) or type(error).__name__)


def _check_rate(rate: float) -> float:
    rate = float(rate)
    if not (math.isfinite(rate) and rate > 0):
        raise ValueError(f"rate must be a finite number > 0, got {rate}")
    return rate
