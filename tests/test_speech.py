"""
Tests for speech output, synthesis and the voice listener.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

from models.detection import BoundingBox, Detection, DetectionFrame, EMPTY_FRAME, Position
from speech.output import NOTHING_OF_INTEREST, SpeechOutput, describe_objects
from speech.recognition import VoiceEvents, VoiceListener
from speech.synthesis import Pyttsx3Synthesizer, _voice_matches


def _det(label, position, distance, idx=0):
    return Detection(
        id=f"t-{idx}",
        label=label,
        score=0.9,
        bbox=BoundingBox(0.1, 0.1, 0.2, 0.5),
        distance=distance,
        position=Position(position),
    )


class TestDescribeObjects:
    def test_empty_frame(self):
        assert describe_objects(EMPTY_FRAME) == NOTHING_OF_INTEREST

    def test_shortest_number_form(self):
        frame = DetectionFrame(
            detections=(_det("chair", "center", 1.2), _det("person", "left", 2.0, idx=1)),
            timestamp=1,
        )
        assert describe_objects(frame) == "chair to your center, 1.2 meters, person to your left, 2 meters"

    def test_rounds_to_tenths(self):
        frame = DetectionFrame(detections=(_det("cup", "right", 3.26),), timestamp=1)
        assert describe_objects(frame) == "cup to your right, 3.3 meters"

    def test_exact_half_rounds_up(self):
        frame = DetectionFrame(detections=(_det("cup", "right", 2.25),), timestamp=1)
        assert describe_objects(frame) == "cup to your right, 2.3 meters"

    def test_floor_at_half_meter(self):
        frame = DetectionFrame(detections=(_det("cup", "right", 0.04),), timestamp=1)
        assert describe_objects(frame) == "cup to your right, 0.5 meters"

    def test_missing_distance(self):
        frame = DetectionFrame(detections=(_det("cup", "right", None),), timestamp=1)
        assert describe_objects(frame) == "cup to your right"

    def test_limits_to_five(self):
        frame = DetectionFrame(
            detections=tuple(_det(f"o{i}", "left", 1.0, idx=i) for i in range(8)),
            timestamp=1,
        )
        assert describe_objects(frame).count("to your") == 5


class FakeSynth:
    def __init__(self, error=None):
        self.said = []
        self.error = error
        self.closed = False

    def say(self, text, locale="en-US"):
        if self.error:
            raise self.error
        self.said.append((text, locale))

    def close(self):
        self.closed = True


class TestSpeechOutput:
    def test_speaks_with_locale(self):
        synth = FakeSynth()
        speech = SpeechOutput(synth, locale="en-GB")
        assert speech.speak("hello") is True
        assert synth.said == [("hello", "en-GB")]

    def test_drops_consecutive_duplicates(self):
        synth = FakeSynth()
        speech = SpeechOutput(synth)
        speech.speak("a")
        speech.speak("a")
        speech.speak("b")
        speech.speak("a")
        assert [t for t, _ in synth.said] == ["a", "b", "a"]

    def test_ignores_empty_text(self):
        synth = FakeSynth()
        speech = SpeechOutput(synth)
        assert speech.speak("") is False
        assert speech.speak(None) is False
        assert synth.said == []
        assert speech.last_spoken is None

    def test_failure_is_swallowed_and_still_deduplicates(self):
        synth = FakeSynth(error=RuntimeError("no audio device"))
        speech = SpeechOutput(synth)
        assert speech.speak("hello") is False
        assert speech.last_spoken == "hello"
        synth.error = None
        assert speech.speak("hello") is False
        assert synth.said == []

    def test_reset_allows_repeat(self):
        synth = FakeSynth()
        speech = SpeechOutput(synth)
        speech.speak("a")
        speech.reset()
        speech.speak("a")
        assert len(synth.said) == 2

    def test_speak_objects(self):
        synth = FakeSynth()
        speech = SpeechOutput(synth)
        speech.speak_objects(EMPTY_FRAME)
        assert synth.said[0][0] == NOTHING_OF_INTEREST

    def test_close_closes_synthesizer(self):
        synth = FakeSynth()
        SpeechOutput(synth).close()
        assert synth.closed is True

    def test_close_without_synth_close(self):
        SpeechOutput(SimpleNamespace(say=lambda text, locale="en-US": None)).close()


class FakeTTSEngine:
    def __init__(self, voices=()):
        self.props = {"voices": list(voices)}
        self.spoken = []

    def setProperty(self, name, value):
        self.props[name] = value

    def getProperty(self, name):
        return self.props.get(name)

    def say(self, text):
        self.spoken.append(text)

    def runAndWait(self):
        pass


class TestPyttsx3Synthesizer:
    def test_speaks_queued_text_before_close(self):
        engine = FakeTTSEngine()
        synth = Pyttsx3Synthesizer(rate=150, volume=0.5, engine=engine)
        synth.say("one")
        synth.say("two")
        synth.close()

        assert engine.spoken == ["one", "two"]
        assert engine.props["rate"] == 150
        assert engine.props["volume"] == 0.5

    def test_selects_matching_voice(self):
        voices = [
            SimpleNamespace(id="fr", languages=["fr_FR"]),
            SimpleNamespace(id="en", languages=[b"\x05en-us"]),
        ]
        engine = FakeTTSEngine(voices)
        synth = Pyttsx3Synthesizer(engine=engine)
        synth.say("hello", locale="en-US")
        synth.close()

        assert engine.props["voice"] == "en"

    def test_voice_matches_by_id(self):
        assert _voice_matches(SimpleNamespace(id="com.apple.voice.en-US.Samantha", languages=[]), "en-US")
        assert not _voice_matches(SimpleNamespace(id="de", languages=["de_DE"]), "en-US")

    def test_engine_errors_do_not_stop_worker(self):
        engine = FakeTTSEngine()
        calls = []

        def flaky_say(text):
            calls.append(text)
            if text == "bad":
                raise RuntimeError("driver error")
            engine.spoken.append(text)

        engine.say = flaky_say
        synth = Pyttsx3Synthesizer(engine=engine)
        synth.say("bad")
        synth.say("good")
        synth.close()

        assert calls == ["bad", "good"]
        assert engine.spoken == ["good"]


class FakeRecognizer:
    def __init__(self, transcript="what do you see", error=None):
        self.transcript = transcript
        self.error = error
        self.listeners = []
        self.stopped = 0

    def recognize_google(self, audio, language="en-US"):
        self.language = language
        if self.error:
            raise self.error
        return self.transcript

    def listen_in_background(self, source, callback, phrase_time_limit=None):
        self.listeners.append(callback)

        def stopper(wait_for_stop=True):
            self.listeners.remove(callback)
            self.stopped += 1

        return stopper


def _listener(recognizer, events=None, **kwargs):
    return VoiceListener(
        events=events,
        recognizer_factory=lambda: recognizer,
        microphone_factory=MagicMock,
        **kwargs,
    )


class TestVoiceListener:
    def test_start_and_stop_emit_events(self):
        recognizer = FakeRecognizer()
        events = VoiceEvents(on_start=MagicMock(), on_end=MagicMock())
        listener = _listener(recognizer, events)

        assert listener.start_listening() is True
        assert listener.is_listening
        events.on_start.assert_called_once()

        assert listener.stop_listening() is True
        assert not listener.is_listening
        events.on_end.assert_called_once()

    def test_configures_recognizer(self):
        recognizer = FakeRecognizer()
        listener = _listener(recognizer, energy_threshold=1234, pause_threshold=0.5)
        listener.start_listening()
        assert recognizer.energy_threshold == 1234
        assert recognizer.pause_threshold == 0.5

    def test_repeated_cycles_do_not_leak_listeners(self):
        recognizer = FakeRecognizer()
        listener = _listener(recognizer)
        for _ in range(5):
            listener.start_listening()
            listener.start_listening()
            listener.stop_listening()
        assert recognizer.listeners == []
        assert recognizer.stopped == 5

    def test_result_forwarded_with_locale(self):
        recognizer = FakeRecognizer(transcript="how many people")
        results = []
        listener = _listener(recognizer, VoiceEvents(on_result=results.append), locale="en-GB")
        listener.start_listening()

        recognizer.listeners[0](recognizer, object())

        assert results == ["how many people"]
        assert recognizer.language == "en-GB"

    def test_unrecognized_audio_is_ignored(self):
        recognizer = FakeRecognizer(error=ValueError("unintelligible"))
        results = []
        listener = _listener(recognizer, VoiceEvents(on_result=results.append))
        listener.start_listening()

        recognizer.listeners[0](recognizer, object())

        assert results == []

    def test_start_failure_is_swallowed(self):
        def broken_mic():
            raise OSError("no microphone")

        events = VoiceEvents(on_start=MagicMock())
        listener = VoiceListener(
            events=events,
            recognizer_factory=FakeRecognizer,
            microphone_factory=broken_mic,
        )
        assert listener.start_listening() is False
        assert not listener.is_listening
        events.on_start.assert_not_called()

    def test_stop_when_idle_is_noop(self):
        events = VoiceEvents(on_end=MagicMock())
        listener = _listener(FakeRecognizer(), events)
        assert listener.stop_listening() is True
        events.on_end.assert_not_called()

    def test_callback_errors_are_contained(self):
        recognizer = FakeRecognizer()
        listener = _listener(recognizer, VoiceEvents(on_start=MagicMock(side_effect=RuntimeError("boom"))))
        assert listener.start_listening() is True

    def test_close_stops_and_drops_callbacks(self):
        recognizer = FakeRecognizer()
        results = []
        listener = _listener(recognizer, VoiceEvents(on_result=results.append))
        listener.start_listening()
        callback = recognizer.listeners[0]
        listener.close()

        callback(recognizer, object())
        assert recognizer.listeners == []
        assert results == []
