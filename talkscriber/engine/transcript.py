"""
Folds recognized segments into utterance and transcription events.
"""

from typing import Callable, List, Optional, Sequence

from utils import get_logger
from .protocol import TranscriptSegment

TextCallback = Callable[[str], None]


class TranscriptAccumulator:
    """Turns each `segments` message into caller events.

    Every segment produces an utterance event right away. Once the whole batch
    is processed the space-joined text is reported as one transcription and the
    buffer is cleared, so nothing carries over to the next message.
    """

    def __init__(self,
                 on_utterance: Optional[TextCallback] = None,
                 on_transcription: Optional[TextCallback] = None,
                 on_end_of_speech: Optional[TextCallback] = None,
                 logger=None):
        self.on_utterance = on_utterance
        self.on_transcription = on_transcription
        self.on_end_of_speech = on_end_of_speech
        self.logger = logger or get_logger(f"{__name__}.TranscriptAccumulator")
        self._buffer: List[str] = []
        self.transcriptions = 0

    def on_segments(self, segments: Sequence[TranscriptSegment]) -> str:
        """Process one batch and return the transcription it produced ('' if none)"""
        try:
            for segment in segments:
                if self.on_utterance:
                    self.on_utterance(segment.text)
                self._buffer.append(segment.text)

                if segment.is_end_of_utterance:
                    self.logger.info("🛑 End of speech detected")
                    if self.on_end_of_speech:
                        self.on_end_of_speech(segment.text)

            result = " ".join(self._buffer).strip()
        finally:
            self._buffer.clear()

        if result:
            self.transcriptions += 1
            self.logger.debug(f"📝 Transcription: \"{result}\"")
            if self.on_transcription:
                self.on_transcription(result)
        return result
