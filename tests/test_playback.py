"""
Playback Controller Tests - read-aloud state machine.

Covers state transitions, settle-delayed re-issue of speech, stale
callback rejection and the index/status invariant.
"""

import pytest

from docreader.readalong.events import (
    Highlight,
    PlaybackError,
    PlaybackStatus,
    PlaybackStatusChanged,
    Progress,
)
from docreader.readalong.playback import PlaybackController, PlaybackState


def assert_index_bound(controller):
    length = len(controller.sentences)
    assert 0 <= controller.current_index <= length
    finished = controller.status == PlaybackStatus.FINISHED
    assert finished == (controller.current_index == length)


def play_to(controller, engine, scheduler, index):
    """Start and let the engine finish sentences until current_index == index."""
    controller.start()
    for _ in range(index):
        engine.finish()
        scheduler.advance(0.2)
    assert controller.current_index == index


class TestStart:
    """Tests for start()."""

    def test_start_speaks_first_sentence(self, controller, engine):
        """Starting from idle speaks sentence 0 immediately."""
        assert controller.start() is True

        assert controller.status == PlaybackStatus.PLAYING
        assert len(engine.requests) == 1
        assert engine.last.request.text == "One is first."

    def test_start_without_document(self, engine, events, announcements, scheduler):
        """No sentences: stays idle and announces it."""
        ctl = PlaybackController(engine, events=events, announcer=announcements.append,
                                 scheduler=scheduler)

        assert ctl.start() is False
        assert ctl.status == PlaybackStatus.IDLE
        assert engine.requests == []
        assert announcements == ["No document loaded. Please upload a file first."]

    def test_start_while_playing_is_noop(self, controller, engine):
        controller.start()
        controller.start()

        assert len(engine.requests) == 1

    def test_request_uses_selected_voice_and_settings(self, controller, engine):
        """Voice comes from the selector; rate, pitch and volume from the controller."""
        controller.start()
        request = engine.last.request

        assert request.voice.name == "English Neural"
        assert request.rate == 1.0
        assert request.pitch == 1.1
        assert request.volume == 1.0

    def test_highlight_precedes_speech(self, controller, journal):
        """Highlight for the sentence is emitted before the engine is asked to speak."""
        journal.clear()
        controller.start()

        kinds = [entry[0] if entry[0] != "event" else type(entry[1]).__name__ for entry in journal]
        assert kinds.index("Highlight") < kinds.index("speak")
        assert Highlight(index=0) in [entry[1] for entry in journal if entry[0] == "event"]

    def test_no_voices_uses_engine_default(self, controller, engine):
        """An empty voice list is not fatal."""
        engine.voices = ()
        controller.start()

        assert engine.last.request.voice is None
        assert controller.status == PlaybackStatus.PLAYING

    def test_resume_from_paused_index(self, controller, engine, scheduler):
        play_to(controller, engine, scheduler, 2)
        controller.pause()

        controller.start()

        assert controller.current_index == 2
        assert engine.last.request.text == "Three is third."

    def test_restart_after_finish(self, controller, engine, scheduler, sentences):
        """Starting from finished rewinds to the first sentence."""
        play_to(controller, engine, scheduler, len(sentences) - 1)
        engine.finish()
        assert controller.status == PlaybackStatus.FINISHED

        controller.start()

        assert controller.current_index == 0
        assert engine.last.request.text == "One is first."


class TestCompletion:
    """Tests for utterance-complete handling."""

    def test_next_sentence_after_settle_delay(self, controller, engine, scheduler):
        controller.start()
        engine.finish()

        assert controller.current_index == 1
        assert len(engine.requests) == 1  # Not yet issued

        scheduler.advance(0.1)
        assert len(engine.requests) == 1

        scheduler.advance(0.1)
        assert len(engine.requests) == 2
        assert engine.last.request.text == "Two is second."

    def test_reads_to_finish(self, controller, engine, scheduler, sentences, announcements, recorder):
        controller.start()
        for _ in range(len(sentences)):
            assert_index_bound(controller)
            engine.finish()
            scheduler.advance(0.2)

        assert controller.status == PlaybackStatus.FINISHED
        assert controller.current_index == len(sentences)
        assert len(engine.requests) == len(sentences)
        assert announcements[-1] == "Document reading complete."
        assert recorder.of_type(PlaybackStatusChanged)[-1].status == PlaybackStatus.FINISHED
        assert_index_bound(controller)

    def test_progress_events(self, controller, engine, recorder, sentences):
        recorder.clear()
        controller.start()
        engine.finish()

        assert Progress(index=0, total=len(sentences)) in recorder.events
        assert Progress(index=1, total=len(sentences)) in recorder.events


class TestPause:
    """Tests for pause()."""

    def test_pause_cancels_speech(self, controller, engine):
        controller.start()
        controller.pause()

        assert controller.status == PlaybackStatus.PAUSED
        assert engine.cancels == 1

    def test_pause_cancels_pending_issue(self, controller, engine, scheduler):
        """Pausing during the settle delay prevents the next utterance."""
        controller.start()
        engine.finish()
        controller.pause()

        scheduler.advance(1.0)

        assert len(engine.requests) == 1
        assert scheduler.pending == 0

    def test_late_completion_after_pause_is_ignored(self, controller, engine, scheduler):
        controller.start()
        controller.pause()

        engine.finish()
        scheduler.advance(1.0)

        assert controller.current_index == 0
        assert controller.status == PlaybackStatus.PAUSED

    def test_pause_when_idle_is_noop(self, controller, engine):
        controller.pause()

        assert controller.status == PlaybackStatus.IDLE
        assert engine.cancels == 0

    def test_toggle(self, controller):
        controller.toggle()
        assert controller.status == PlaybackStatus.PLAYING

        controller.toggle()
        assert controller.status == PlaybackStatus.PAUSED


class TestEngineError:
    """Tests for engine error handling."""

    def test_error_pauses_and_surfaces(self, controller, engine, recorder, announcements):
        controller.start()
        engine.fail("audio device lost")

        assert controller.status == PlaybackStatus.PAUSED
        assert controller.current_index == 0
        assert str(controller.last_error) == "audio device lost"
        assert PlaybackError(message="audio device lost") in recorder.events
        assert "Error: audio device lost" in announcements

    def test_error_does_not_retry(self, controller, engine, scheduler):
        controller.start()
        engine.fail()
        scheduler.advance(1.0)

        assert len(engine.requests) == 1

    def test_stale_error_is_discarded(self, controller, engine, scheduler):
        """An error for a cancelled request does not pause playback."""
        controller.start()
        controller.seek(1)
        scheduler.advance(0.2)

        engine.fail(n=0)

        assert controller.status == PlaybackStatus.PLAYING
        assert controller.last_error is None

    def test_synchronous_speak_failure(self, controller, engine):
        from docreader.readalong.speech_engine import SpeechEngineError

        def broken(request, on_end, on_error):
            raise SpeechEngineError("engine unavailable")

        engine.speak = broken
        controller.start()

        assert controller.status == PlaybackStatus.PAUSED
        assert str(controller.last_error) == "engine unavailable"

    def test_voice_query_failure_pauses(self, controller, engine, announcements):
        """A driver error while listing voices is surfaced like a speech error."""

        def broken():
            raise OSError("voice query failed")

        engine.list_voices = broken
        controller.start()

        assert controller.status == PlaybackStatus.PAUSED
        assert str(controller.last_error) == "voice query failed"
        assert "Error: voice query failed" in announcements
        assert engine.requests == []

        engine.list_voices = lambda: ()
        controller.start()

        assert controller.status == PlaybackStatus.PLAYING
        assert len(engine.requests) == 1


class TestSeek:
    """Tests for seek()."""

    def test_seek_while_playing_scenario(self, controller, engine, scheduler, recorder):
        """Playing at 3, seek(+1): cancel, highlight 4, speak 4 after delay, stale 3 ignored."""
        play_to(controller, engine, scheduler, 3)
        stale = engine.last
        cancels = engine.cancels
        recorder.clear()

        assert controller.seek(1) is True

        assert engine.cancels == cancels + 1
        assert recorder.events[0] == Highlight(index=4)
        assert engine.last is stale  # Nothing issued before the settle delay

        scheduler.advance(0.2)
        assert engine.last.request.text == "Five is fifth."

        stale.on_end()
        assert controller.current_index == 4
        assert controller.status == PlaybackStatus.PLAYING

    def test_seek_back_while_playing(self, controller, engine, scheduler):
        play_to(controller, engine, scheduler, 2)

        controller.seek(-1)
        scheduler.advance(0.2)

        assert controller.current_index == 1
        assert engine.last.request.text == "Two is second."

    def test_rapid_seeks_issue_once(self, controller, engine, scheduler):
        """Only the last target is spoken when seeks arrive within the delay."""
        controller.start()
        controller.seek(1)
        controller.seek(1)
        controller.seek(1)
        scheduler.advance(0.2)

        assert len(engine.requests) == 2
        assert engine.last.request.text == "Four is fourth."

    def test_seek_while_paused_moves_only(self, controller, engine, recorder):
        controller.start()
        controller.pause()
        requests = len(engine.requests)

        controller.seek(1)

        assert controller.current_index == 1
        assert len(engine.requests) == requests
        assert Highlight(index=1) in recorder.events

    def test_seek_out_of_range(self, controller, sentences):
        assert controller.seek(-1) is False
        assert controller.current_index == 0

        for _ in range(len(sentences) - 1):
            controller.seek(1)
        assert controller.seek(1) is False
        assert controller.current_index == len(sentences) - 1

    def test_seek_back_from_finished(self, controller, engine, scheduler, sentences):
        play_to(controller, engine, scheduler, len(sentences) - 1)
        engine.finish()

        assert controller.seek(-1) is True

        assert controller.current_index == len(sentences) - 1
        assert controller.status == PlaybackStatus.PAUSED
        assert_index_bound(controller)

    def test_invalid_delta(self, controller):
        with pytest.raises(ValueError, match="seek delta"):
            controller.seek(2)


class TestSetRate:
    """Tests for set_rate()."""

    def test_rate_change_restarts_current_sentence(self, controller, engine, scheduler):
        controller.start()
        controller.set_rate(1.5)

        assert engine.cancels == 1
        scheduler.advance(0.2)

        assert len(engine.requests) == 2
        assert engine.last.request.text == "One is first."
        assert engine.last.request.rate == 1.5

    def test_same_index_stale_completion_ignored(self, controller, engine, scheduler):
        """The cancelled utterance of the same sentence cannot advance playback."""
        controller.start()
        first = engine.last
        controller.set_rate(2.0)
        scheduler.advance(0.2)

        first.on_end()

        assert controller.current_index == 0

    def test_rate_stored_when_paused(self, controller, engine):
        controller.set_rate(0.8)

        assert engine.cancels == 0
        controller.start()
        assert engine.last.request.rate == 0.8

    @pytest.mark.parametrize("rate", [0, -1.0, float("nan"), float("inf")])
    def test_invalid_rate(self, controller, rate):
        with pytest.raises(ValueError, match="finite number > 0"):
            controller.set_rate(rate)

        assert controller.rate == 1.0

    def test_invalid_initial_rate(self, engine):
        with pytest.raises(ValueError):
            PlaybackController(engine, rate=float("nan"))


class TestReset:
    """Tests for reset() and load()."""

    def test_reset_while_playing(self, controller, engine, scheduler):
        play_to(controller, engine, scheduler, 2)

        controller.reset()

        assert controller.state == PlaybackState(current_index=0, status=PlaybackStatus.IDLE, rate=1.0)
        assert engine.cancels >= 1

        engine.finish()
        scheduler.advance(1.0)
        assert controller.current_index == 0

    def test_load_replaces_document(self, controller, engine, scheduler):
        from docreader.readalong.sentence_splitter import split_into_sentences

        play_to(controller, engine, scheduler, 2)
        controller.load(split_into_sentences("Only one."))

        assert controller.status == PlaybackStatus.IDLE
        assert len(controller.sentences) == 1
        controller.start()
        assert engine.last.request.text == "Only one."


class TestIndexBound:
    """The index/status invariant holds through a mixed session."""

    def test_mixed_operations(self, controller, engine, scheduler, sentences):
        operations = [
            controller.start,
            lambda: engine.finish(),
            lambda: scheduler.advance(0.2),
            lambda: controller.seek(1),
            lambda: controller.set_rate(1.3),
            lambda: scheduler.advance(0.2),
            controller.pause,
            lambda: controller.seek(-1),
            controller.start,
            lambda: engine.fail(),
            controller.start,
        ]
        for op in operations:
            op()
            assert_index_bound(controller)

        for _ in range(len(sentences) * 2):
            if controller.status != PlaybackStatus.PLAYING:
                break
            engine.finish()
            scheduler.advance(0.2)
            assert_index_bound(controller)

        assert controller.status == PlaybackStatus.FINISHED
