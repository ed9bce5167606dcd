"""Audible alerts for new orders and messages.

Alerts stay silent until ``enable()`` is called from an explicit user action
(a click on "enable voice"); nothing is ever auto-played before that.
"""

from typing import Optional, Protocol

from libs.common.logging import get_logger

logger = get_logger(__name__)

CHIME_FREQUENCY_HZ = 880.0  # A5
CHIME_DURATION_SECONDS = 0.2


class SpeechOutput(Protocol):
    def speak(self, text: str) -> None: ...

    def tone(self, frequency_hz: float, duration_seconds: float) -> None: ...


class LogSpeechOutput:
    """Writes alerts to the log. Default when no audio device is wired in."""

    def speak(self, text: str) -> None:
        logger.info("[voice] %s", text)

    def tone(self, frequency_hz: float, duration_seconds: float) -> None:
        logger.info("[tone] %.0f Hz for %.2fs", frequency_hz, duration_seconds)


class VoiceAlerts:
    def __init__(self, output: Optional[SpeechOutput] = None):
        self.output = output if output is not None else LogSpeechOutput()
        self.enabled = False

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def announce(self, text: str) -> bool:
        """Speak ``text`` if enabled. Returns whether anything was played."""
        if not self.enabled:
            return False
        try:
            self.output.speak(text)
        except Exception as e:
            logger.warning("Speech output failed: %s", e)
            return False
        return True

    def chime(
        self,
        frequency_hz: float = CHIME_FREQUENCY_HZ,
        duration_seconds: float = CHIME_DURATION_SECONDS,
    ) -> bool:
        if not self.enabled:
            return False
        try:
            self.output.tone(frequency_hz, duration_seconds)
        except Exception as e:
            logger.warning("Tone output failed: %s", e)
            return False
        return True
