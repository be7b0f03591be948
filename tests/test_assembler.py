import pytest

from common.schemas import RawTranscription
from recording_service.assembler import assemble, format_timestamp, markdown_to_html
from fakes import TWO_SPEAKER_PARAGRAPHS, deepgram_response


def _raw(paragraphs, confidences=(0.9, 0.95, 0.99)):
    return RawTranscription.model_validate(deepgram_response(paragraphs, confidences))


def _paragraph(speaker, *sentences):
    return {"speaker": speaker, "sentences": [{"text": t, "start": s, "end": s + 1} for t, s in sentences]}


class TestFormatTimestamp:
    def test_minutes_and_padded_seconds(self):
        assert format_timestamp(125.7) == "2:05"

    def test_zero(self):
        assert format_timestamp(0.0) == "0:00"

    def test_over_an_hour_stays_in_minutes(self):
        assert format_timestamp(3725.2) == "62:05"


class TestMarkdownToHtml:
    def test_bold_italic_and_paragraph(self):
        assert markdown_to_html("**a** *b*\n\nc") == "<p><strong>a</strong> <em>b</em></p><p>c</p>"

    def test_single_newline_is_line_break(self):
        assert markdown_to_html("a\nb") == "<p>a<br>b</p>"

    def test_plain_text_is_wrapped_once(self):
        assert markdown_to_html("hello") == "<p>hello</p>"


class TestAssemble:
    def test_two_speakers(self):
        result = assemble(_raw(TWO_SPEAKER_PARAGRAPHS))
        assert result.text == (
            "Speaker 1 (0:00): Hello there. How are you? \n\n"
            "Speaker 2 (2:05): Fine, thanks. See you."
        )
        assert result.html == (
            "<p>Speaker 1 (0:00): Hello there. How are you? </p>"
            "<p>Speaker 2 (2:05): Fine, thanks. See you.</p>"
        )
        assert result.speaker_count == 2

    def test_metrics_single_speaker(self):
        result = assemble(_raw([_paragraph(0, ("Hi.", 0.0))], confidences=(0.9, 0.95, 0.99)))
        assert result.average_word_confidence == 0.947
        assert result.uncertain_word_fraction == 0.0
        assert result.speaker_count == 1

    def test_uncertain_fraction(self):
        result = assemble(_raw([_paragraph(0, ("Hi.", 0.0))], confidences=(0.5, 0.6, 0.8, 0.9)))
        assert result.uncertain_word_fraction == 0.5
        assert result.average_word_confidence == 0.7

    def test_label_only_on_speaker_change(self):
        paragraphs = [
            _paragraph(0, ("A.", 0.0)),
            _paragraph(1, ("B.", 5.0)),
            _paragraph(1, ("C.", 10.0)),
            _paragraph(0, ("D.", 15.0), ("E.", 16.0)),
        ]
        text = assemble(_raw(paragraphs)).text
        assert text.count("Speaker") == 3
        assert text == (
            "Speaker 1 (0:00): A. \n\n"
            "Speaker 2 (0:05): B. C. \n\n"
            "Speaker 1 (0:15): D. E."
        )

    def test_first_sentence_always_labelled(self):
        text = assemble(_raw([_paragraph(3, ("Only.", 61.0))])).text
        assert text == "Speaker 4 (1:01): Only."

    def test_missing_speaker_defaults_to_zero(self):
        result = assemble(_raw([{"sentences": [{"text": "Hi.", "start": 0.0, "end": 1.0}]}]))
        assert result.text == "Speaker 1 (0:00): Hi."
        assert result.speaker_count == 1

    def test_label_override(self):
        paragraphs = [_paragraph(0, ("A.", 0.0)), _paragraph(1, ("B.", 5.0))]
        text = assemble(_raw(paragraphs), speaker_label="+15551234567").text
        assert text == "+15551234567 (0:00): A. \n\n+15551234567 (0:05): B."

    def test_no_channels_is_empty(self):
        result = assemble(RawTranscription.model_validate({"results": {"channels": []}}))
        assert result.text == ""
        assert result.html == ""
        assert result.average_word_confidence == 0.0
        assert result.uncertain_word_fraction == 0.0
        assert result.speaker_count == 0

    def test_no_words_gives_zero_metrics(self):
        result = assemble(_raw([_paragraph(0, ("Hi.", 0.0))], confidences=()))
        assert result.average_word_confidence == 0.0
        assert result.uncertain_word_fraction == 0.0

    def test_null_confidence_counts_as_zero(self):
        raw = deepgram_response([_paragraph(0, ("Hi.", 0.0))], confidences=(1.0,))
        raw["results"]["channels"][0]["alternatives"][0]["words"].append({"word": "x", "confidence": None})
        result = assemble(RawTranscription.model_validate(raw))
        assert result.average_word_confidence == pytest.approx(0.5)
        assert result.uncertain_word_fraction == 0.5

    def test_no_paragraphs_gives_empty_text(self):
        result = assemble(_raw([]))
        assert result.text == ""
        assert result.speaker_count == 0
