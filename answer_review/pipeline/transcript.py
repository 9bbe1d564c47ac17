"""
Transcript aggregation.

The speech engine may revise segments before finalizing them, so the answer
text is always rebuilt from the full segment list rather than patched.
"""

from typing import Iterable

from answer_review.core.models import TranscriptSegment


def aggregate_transcript(segments: Iterable[TranscriptSegment]) -> str:
    """
    Join the text of all final segments with single spaces, in arrival order.

    Interim segments and final segments without text are skipped.
    """
    return " ".join(
        segment.text for segment in segments if segment.is_final and segment.text
    )


def latest_interim_text(segments: Iterable[TranscriptSegment]) -> str:
    """Text of the last interim segment, shown while the user is still speaking."""
    interim = ""
    for segment in segments:
        if not segment.is_final:
            interim = segment.text
    return interim
