"""
Voice command handling: transcript in, spoken answer out.
"""

from .interpreter import HELP_TEXT, VoiceCommandHandler, interpret

__all__ = ["HELP_TEXT", "VoiceCommandHandler", "interpret"]
