"""Turn a diarized provider response into a speaker-labeled transcript.

Output text looks like::

    Speaker 1 (0:00): Hello there. How are you?

    Speaker 2 (0:04): Fine, thanks.

A label is written only when the speaker changes between consecutive
sentences, so one speaker's consecutive paragraphs run together.
"""

from __future__ import annotations

import re
from typing import Optional

from common.schemas import AssembledTranscript, RawTranscription

UNCERTAIN_CONFIDENCE = 0.7

_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*(.*?)\*")


def format_timestamp(seconds: float) -> str:
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def markdown_to_html(markdown: str) -> str:
    """Minimal markdown to HTML: bold, italic, paragraph and line breaks only.

    Substitutions run in that fixed order. Nothing else (lists, links,
    nesting, escaping) is handled.
    """
    html = _BOLD.sub(r"<strong>\1</strong>", markdown)
    html = _ITALIC.sub(r"<em>\1</em>", html)
    html = html.replace("\n\n", "</p><p>")
    html = html.replace("\n", "<br>")
    return f"<p>{html}</p>"


def assemble(raw: RawTranscription, speaker_label: Optional[str] = None) -> AssembledTranscript:
    channels = raw.results.channels
    if not channels:
        return AssembledTranscript()

    alternatives = channels[0].alternatives
    alternative = alternatives[0] if alternatives else None
    words = alternative.words if alternative else []
    paragraphs = alternative.paragraphs.paragraphs if alternative and alternative.paragraphs else []

    parts: list[str] = []
    previous_speaker: Optional[int] = None
    for paragraph in paragraphs:
        speaker = paragraph.speaker if paragraph.speaker is not None else 0
        for sentence in paragraph.sentences:
            if speaker != previous_speaker:
                label = speaker_label or f"Speaker {speaker + 1}"
                parts.append(f"\n\n{label} ({format_timestamp(sentence.start)}): ")
                previous_speaker = speaker
            parts.append(sentence.text + " ")
    text = "".join(parts).strip()

    confidences = [w.confidence or 0.0 for w in words]
    if confidences:
        average = sum(confidences) / len(confidences)
        uncertain = sum(1 for c in confidences if c < UNCERTAIN_CONFIDENCE) / len(confidences)
    else:
        average = uncertain = 0.0

    speakers = {p.speaker if p.speaker is not None else 0 for p in paragraphs}

    return AssembledTranscript(
        text=text,
        html=markdown_to_html(text),
        average_word_confidence=round(average, 3),
        uncertain_word_fraction=round(uncertain, 3),
        speaker_count=len(speakers),
    )
