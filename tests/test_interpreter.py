"""
Tests for the voice command interpreter.
"""

import pytest

from commands.interpreter import HELP_TEXT, VoiceCommandHandler, format_tenths, interpret
from models.detection import BoundingBox, Detection, DetectionFrame, EMPTY_FRAME, Position


def _det(label, position="center", distance=None, idx=0):
    return Detection(
        id=f"t-{idx}",
        label=label,
        score=0.9,
        bbox=BoundingBox(0.4, 0.2, 0.2, 0.5),
        distance=distance,
        position=Position(position),
    )


def _frame(*detections):
    return DetectionFrame(detections=tuple(detections), timestamp=1)


class TestWhatDoYouSee:
    def test_lists_objects_in_frame_order(self):
        frame = _frame(_det("chair", "center", 1.2), _det("person", "left", 2.0, idx=1))
        assert interpret("what do you see", frame) == "chair center 1.2 meters, person left 2.0 meters"

    def test_empty_frame(self):
        assert interpret("what do you see", EMPTY_FRAME) == "I do not see anything."

    def test_at_most_five_objects(self):
        frame = _frame(*[_det(f"obj{i}", "right", 1.0 + i, idx=i) for i in range(7)])
        response = interpret("What do you see?", frame)
        assert response.count("meters") == 5
        assert "obj5" not in response

    def test_object_without_distance(self):
        frame = _frame(_det("cup", "left", None))
        assert interpret("what do you see", frame) == "cup left"

    def test_case_and_whitespace_insensitive(self):
        frame = _frame(_det("chair", "center", 1.24))
        assert interpret("   WHAT DO YOU SEE  ", frame) == "chair center 1.2 meters"


class TestHowManyPeople:
    def test_plural(self):
        frame = _frame(*[_det("person", idx=i) for i in range(3)], _det("dog", idx=3))
        assert interpret("how many people are there", frame) == "3 people"

    def test_singular(self):
        frame = _frame(_det("person"), _det("chair", idx=1))
        assert interpret("how many people", frame) == "1 person"

    def test_zero(self):
        assert interpret("how many people", EMPTY_FRAME) == "0 people"


class TestNearest:
    def test_picks_minimum_distance(self):
        frame = _frame(_det("sofa", "left", 2.0), _det("table", "right", 0.9, idx=1))
        assert interpret("what's the nearest thing", frame) == "table to your right, 0.9 meters"

    def test_closest_synonym(self):
        frame = _frame(_det("sofa", "left", 2.0))
        assert interpret("which is closest", frame) == "sofa to your left, 2.0 meters"

    def test_empty_frame(self):
        assert interpret("nearest", EMPTY_FRAME) == "No objects detected."

    def test_ties_keep_first(self):
        frame = _frame(_det("cat", "left", 1.5), _det("dog", "right", 1.5, idx=1))
        assert interpret("nearest", frame) == "cat to your left, 1.5 meters"

    def test_missing_distance_loses_to_real_distance(self):
        frame = _frame(_det("ghost", "left", None), _det("chair", "center", 7.9, idx=1))
        assert interpret("nearest", frame) == "chair to your center, 7.9 meters"

    def test_only_missing_distance(self):
        frame = _frame(_det("ghost", "left", None))
        assert interpret("nearest", frame) == "ghost to your left"


class TestIntentPriority:
    def test_first_intent_wins(self):
        frame = _frame(_det("person", "left", 2.0))
        assert interpret("what do you see nearest", frame) == "person left 2.0 meters"

    def test_people_before_nearest(self):
        frame = _frame(_det("person", "left", 2.0))
        assert interpret("how many people are nearest", frame) == "1 person"


class TestFallback:
    @pytest.mark.parametrize("transcript", ["tell me a joke", "", "   ", None, "12345"])
    def test_help_text(self, transcript):
        assert interpret(transcript, EMPTY_FRAME) == HELP_TEXT

    def test_help_mentions_every_intent(self):
        assert "what do you see" in HELP_TEXT
        assert "how many people" in HELP_TEXT
        assert "nearest" in HELP_TEXT


class TestVoiceCommandHandler:
    def test_speaks_response(self):
        spoken = []
        frame = _frame(_det("person"))
        handler = VoiceCommandHandler(lambda: frame, spoken.append)

        assert handler.handle("How many people?") == "1 person"
        assert spoken == ["1 person"]

    def test_empty_transcript_is_ignored(self):
        spoken = []
        handler = VoiceCommandHandler(lambda: EMPTY_FRAME, spoken.append)

        assert handler.handle("   ") is None
        assert handler.handle(None) is None
        assert spoken == []

    def test_reads_latest_frame(self):
        frames = [EMPTY_FRAME]
        spoken = []
        handler = VoiceCommandHandler(lambda: frames[-1], spoken.append)

        handler.handle("what do you see")
        frames.append(_frame(_det("chair", "center", 1.2)))
        handler.handle("what do you see")

        assert spoken == ["I do not see anything.", "chair center 1.2 meters"]


class TestDistanceRounding:
    def test_exact_half_rounds_up_in_listing(self):
        frame = _frame(_det("chair", "center", 2.25))
        assert interpret("what do you see", frame) == "chair center 2.3 meters"

    def test_exact_half_rounds_up_for_nearest(self):
        frame = _frame(_det("door", "right", 0.75))
        assert interpret("nearest", frame) == "door to your right, 0.8 meters"

    @pytest.mark.parametrize("value,expected", [(2.0, "2.0"), (1.24, "1.2"), (2.25, "2.3"), (7.9, "7.9"), (0.5, "0.5")])
    def test_format_tenths(self, value, expected):
        assert format_tenths(value) == expected
