"""Tests for response parsing and the AnalysisResult model."""

import json

import pytest

from soundlytics.analysis.schema import ANALYSIS_SCHEMA, parse_analysis_response, strip_code_fence
from soundlytics.core.models import AnalysisResult, SubGenre
from soundlytics.utils.errors import AnalysisFailedError
from soundlytics.utils.translations import Language


class TestSchema:
    def test_all_fields_required(self, valid_payload):
        assert set(ANALYSIS_SCHEMA["required"]) == set(valid_payload)
        assert set(ANALYSIS_SCHEMA["properties"]) == set(valid_payload)

    def test_technical_details_required(self):
        details = ANALYSIS_SCHEMA["properties"]["technicalDetails"]
        assert details["required"] == ["bpmEstimate", "keyEstimate", "timeSignature"]


class TestStripCodeFence:
    def test_plain(self):
        assert strip_code_fence(' {"a": 1} ') == '{"a": 1}'

    def test_fenced(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'


class TestParseAnalysisResponse:
    def test_valid(self, valid_payload):
        result = parse_analysis_response(json.dumps(valid_payload), language=Language.TH)

        assert result.primary_genre == "Boom Bap"
        assert result.confidence_score == 87
        assert result.sub_genres[1] == SubGenre(name="Lo-Fi Hip Hop", match_percentage=55.5)
        assert result.similar_artists == ["Pete Rock", "A Tribe Called Quest"]
        assert result.technical_details.bpm_estimate == "92 BPM"
        assert result.language is Language.TH

    def test_to_dict_restores_wire_form(self, valid_payload):
        result = parse_analysis_response(json.dumps(valid_payload))
        wire = result.to_dict()
        assert wire["confidenceScore"] == 87
        assert wire["technicalDetails"] == valid_payload["technicalDetails"]
        assert wire["subGenres"][0] == {"name": "Jazz Rap", "matchPercentage": 72.0}

    def test_empty_lists_are_valid(self, valid_payload):
        valid_payload["subGenres"] = []
        valid_payload["similarArtists"] = []
        result = parse_analysis_response(json.dumps(valid_payload))
        assert result.sub_genres == []

    @pytest.mark.parametrize("field", [
        "primaryGenre", "confidenceScore", "subGenres", "moods", "instrumentation",
        "similarArtists", "description", "technicalDetails", "culturalContext",
    ])
    def test_missing_field(self, valid_payload, field):
        del valid_payload[field]
        with pytest.raises(AnalysisFailedError, match=field):
            parse_analysis_response(json.dumps(valid_payload), provider="gemini")

    @pytest.mark.parametrize("field,value", [
        ("primaryGenre", None),
        ("confidenceScore", "high"),
        ("confidenceScore", True),
        ("moods", [1, 2]),
        ("technicalDetails", "92 BPM"),
        ("subGenres", [{"name": "Trap"}]),
    ])
    def test_wrong_types(self, valid_payload, field, value):
        valid_payload[field] = value
        with pytest.raises(AnalysisFailedError):
            parse_analysis_response(json.dumps(valid_payload))

    @pytest.mark.parametrize("score", [-1, 100.6, 250])
    def test_confidence_out_of_range(self, valid_payload, score):
        valid_payload["confidenceScore"] = score
        with pytest.raises(AnalysisFailedError):
            parse_analysis_response(json.dumps(valid_payload))

    @pytest.mark.parametrize("literal", ["Infinity", "-Infinity", "1e999", "NaN"])
    def test_non_finite_numbers(self, valid_payload, literal):
        valid_payload["confidenceScore"] = "SCORE"
        raw = json.dumps(valid_payload).replace('"SCORE"', literal)
        with pytest.raises(AnalysisFailedError):
            parse_analysis_response(raw)

    def test_non_finite_match_percentage(self, valid_payload):
        valid_payload["subGenres"][0]["matchPercentage"] = float("inf")
        with pytest.raises(AnalysisFailedError):
            parse_analysis_response(json.dumps(valid_payload))

    def test_match_percentage_out_of_range(self, valid_payload):
        valid_payload["subGenres"][0]["matchPercentage"] = 140
        with pytest.raises(AnalysisFailedError):
            parse_analysis_response(json.dumps(valid_payload))

    def test_not_an_object(self):
        with pytest.raises(AnalysisFailedError):
            parse_analysis_response("[1, 2, 3]")

    def test_invalid_json_keeps_cause(self):
        with pytest.raises(AnalysisFailedError) as exc_info:
            parse_analysis_response("{oops", provider="openai")
        assert exc_info.value.provider == "openai"
        assert exc_info.value.original_error is not None

    def test_fenced_response(self, valid_payload):
        raw = "```json\n" + json.dumps(valid_payload) + "\n```"
        assert parse_analysis_response(raw).primary_genre == "Boom Bap"


class TestAnalysisResult:
    def test_summary(self, valid_payload):
        result = AnalysisResult.from_dict(valid_payload)
        summary = result.get_summary()
        assert "Boom Bap (87%)" in summary
        assert "92 BPM | D minor | 4/4" in summary

    def test_json_keeps_non_ascii(self, valid_payload):
        valid_payload["primaryGenre"] = "ลูกทุ่ง"
        result = AnalysisResult.from_dict(valid_payload, language=Language.TH)
        assert "ลูกทุ่ง" in result.to_json()
