"""
Shared fixtures: a scripted speech engine, a manual-clock scheduler and an
event recorder.
"""

from dataclasses import dataclass
from typing import Callable, List

import pytest

from docreader.readalong.events import EventChannel
from docreader.readalong.playback import PlaybackController
from docreader.readalong.sentence_splitter import split_into_sentences
from docreader.readalong.speech_engine import SpeechEngine, SpeechEngineError, SpeechRequest
from docreader.readalong.voice_selector import VoiceCandidate


@dataclass
class Utterance:
    request: SpeechRequest
    on_end: Callable[[], None]
    on_error: Callable[[SpeechEngineError], None]


class FakeSpeechEngine(SpeechEngine):
    """Records requests; the test decides when each one ends."""

    def __init__(self, voices=(), journal=None):
        self.voices = tuple(voices)
        self.requests: List[Utterance] = []
        self.cancels = 0
        self.journal = journal if journal is not None else []

    def speak(self, request, on_end, on_error):
        self.requests.append(Utterance(request, on_end, on_error))
        self.journal.append(("speak", request.text))

    def cancel(self):
        self.cancels += 1
        self.journal.append(("cancel",))

    def list_voices(self):
        return self.voices

    @property
    def last(self) -> Utterance:
        return self.requests[-1]

    def finish(self, n: int = -1) -> None:
        self.requests[n].on_end()

    def fail(self, message: str = "synthesis-failed", n: int = -1) -> None:
        self.requests[n].on_error(SpeechEngineError(message))


class _Timer:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """call_later() against a clock that only moves when advance() is called."""

    def __init__(self):
        self.now = 0.0
        self._timers: List[_Timer] = []

    def call_later(self, delay, callback):
        timer = _Timer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [t for t in self._timers if not t.cancelled and t.when <= self.now]
        self._timers = [t for t in self._timers if not t.cancelled and t.when > self.now]
        for timer in sorted(due, key=lambda t: t.when):
            if not timer.cancelled:
                timer.callback()


class EventRecorder:
    """Listener that keeps every event, optionally in a shared journal."""

    def __init__(self, journal=None):
        self.events = []
        self.journal = journal if journal is not None else []

    def __call__(self, event):
        self.events.append(event)
        self.journal.append(("event", event))

    def of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self):
        self.events.clear()


@pytest.fixture
def journal():
    return []


@pytest.fixture
def engine(journal):
    return FakeSpeechEngine(
        voices=[
            VoiceCandidate(name="Basic French", lang="fr-FR", is_local=True, voice_id="fr"),
            VoiceCandidate(name="English Neural", lang="en-US", is_local=False, voice_id="en-neural"),
        ],
        journal=journal,
    )


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def recorder(journal):
    return EventRecorder(journal)


@pytest.fixture
def events(recorder):
    channel = EventChannel()
    channel.subscribe(recorder)
    return channel


@pytest.fixture
def announcements():
    return []


@pytest.fixture
def sentences():
    return split_into_sentences(
        "One is first. Two is second. Three is third. "
        "Four is fourth. Five is fifth. Six is sixth."
    )


@pytest.fixture
def controller(engine, events, announcements, scheduler, sentences):
    ctl = PlaybackController(
        engine,
        events=events,
        announcer=announcements.append,
        scheduler=scheduler,
        rate=1.0,
        pitch=1.1,
        volume=1.0,
        settle_delay=0.2,
    )
    ctl.load(sentences)
    return ctl
