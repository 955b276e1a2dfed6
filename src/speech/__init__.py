"""
Speech input and output: deduplicated synthesis and a voice command listener.
"""

from .output import SpeechOutput, describe_objects
from .recognition import VoiceEvents, VoiceListener
from .synthesis import Pyttsx3Synthesizer, SpeechSynthesizer

__all__ = [
    "SpeechOutput",
    "describe_objects",
    "VoiceEvents",
    "VoiceListener",
    "Pyttsx3Synthesizer",
    "SpeechSynthesizer",
]
