from __future__ import annotations

import asyncio
import json
import threading

import pytest

from app.core.errors import SchemaError
from app.services import style_analysis
from app.services.style_analysis import SYSTEM_PROMPT, StyleAnalyzer, parse_style_analysis
from conftest import FakeOracle, analysis_reply


def test_parse_valid_document():
    analysis = parse_style_analysis(analysis_reply())

    assert analysis.overall_aesthetic == "minimalist"
    assert [p.item for p in analysis.key_pieces] == ["White Tee"]
    assert analysis.key_pieces[0].style_elements == "clean lines"
    assert analysis.color_palette.primary == ["white"]
    assert analysis.color_palette.combined == ["white", "black"]
    assert analysis.styling_patterns == ["layer with a blazer"]
    assert analysis.recommended_searches == ["white tee"]


@pytest.mark.parametrize("fence", ["```json\n{body}\n```", "```\n{body}\n```", "```json{body}```"])
def test_parse_strips_code_fences(fence):
    analysis = parse_style_analysis(fence.format(body=analysis_reply()))
    assert analysis.overall_aesthetic == "minimalist"


@pytest.mark.parametrize(
    "raw",
    [
        "This outfit is a minimalist look with a white tee.",
        "Here you go: " + analysis_reply(),
        "{not json}",
        "",
        analysis_reply(overall_aesthetic=""),
        analysis_reply(overall_aesthetic=42),
        analysis_reply(key_pieces=[]),
        analysis_reply(key_pieces={"item": "White Tee"}),
        analysis_reply(color_palette={"accent": ["black"]}),
        analysis_reply(color_palette={"primary": "white"}),
        analysis_reply(color_palette=None),
    ],
)
def test_parse_rejects_invalid_documents(raw):
    with pytest.raises(SchemaError):
        parse_style_analysis(raw)


def test_parse_rejects_missing_key_pieces():
    doc = json.loads(analysis_reply())
    del doc["key_pieces"]
    with pytest.raises(SchemaError):
        parse_style_analysis(json.dumps(doc))


def test_parse_rejects_missing_primary_palette():
    doc = json.loads(analysis_reply())
    doc["color_palette"] = {"accent": ["black"]}
    with pytest.raises(SchemaError):
        parse_style_analysis(json.dumps(doc))


def test_parse_defaults_optional_sections():
    doc = json.loads(analysis_reply())
    del doc["styling_patterns"]
    del doc["recommended_searches"]
    doc["color_palette"] = {"primary": []}
    analysis = parse_style_analysis(json.dumps(doc))

    assert analysis.styling_patterns == []
    assert analysis.recommended_searches == []
    assert analysis.color_palette.primary == []
    assert analysis.color_palette.accent == []


def test_parse_keeps_malformed_pieces_in_place():
    analysis = parse_style_analysis(analysis_reply(key_pieces=["oops", {"item": "Loafers"}]))
    assert [p.item for p in analysis.key_pieces] == ["", "Loafers"]


def test_analyzer_sends_single_vision_request(test_settings, sample_image_bytes):
    oracle = FakeOracle(vision_reply=analysis_reply())
    analysis = asyncio.run(StyleAnalyzer(oracle, test_settings).analyze(sample_image_bytes, "luxury"))

    assert analysis.overall_aesthetic == "minimalist"
    assert len(oracle.vision_calls) == 1
    call = oracle.vision_calls[0]
    assert call["system"] == SYSTEM_PROMPT
    assert "Consider the budget level: luxury" in call["user"]
    assert call["image"].startswith("data:image/jpeg;base64,")
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 700
    assert call["json_mode"] is True
    assert oracle.text_calls == []


def test_analyze_outcome_tags_failures(test_settings, sample_image_bytes, unreachable):
    analyzer = StyleAnalyzer(FakeOracle(vision_reply="not json"), test_settings)
    outcome = asyncio.run(analyzer.analyze_outcome(sample_image_bytes, "medium"))
    assert outcome.status == "schema_error"
    assert outcome.analysis is None

    analyzer = StyleAnalyzer(FakeOracle(vision_reply=unreachable), test_settings)
    outcome = asyncio.run(analyzer.analyze_outcome(sample_image_bytes, "medium"))
    assert outcome.status == "oracle_error"
    assert outcome.error is unreachable

    analyzer = StyleAnalyzer(FakeOracle(vision_reply=analysis_reply()), test_settings)
    outcome = asyncio.run(analyzer.analyze_outcome(sample_image_bytes, "medium"))
    assert outcome.ok
    assert outcome.analysis is not None


def test_analyze_outcome_tags_undecodable_image(test_settings):
    oracle = FakeOracle(vision_reply=analysis_reply())
    outcome = asyncio.run(StyleAnalyzer(oracle, test_settings).analyze_outcome(b"garbage", "medium"))

    assert outcome.status == "input_error"
    assert oracle.vision_calls == []


def test_image_conversion_runs_off_the_loop_thread(test_settings, sample_image_bytes, monkeypatch):
    threads: list[int] = []
    real_convert = style_analysis.to_jpeg_data_url

    def _recording_convert(image_bytes: bytes) -> str:
        threads.append(threading.get_ident())
        return real_convert(image_bytes)

    monkeypatch.setattr(style_analysis, "to_jpeg_data_url", _recording_convert)
    oracle = FakeOracle(vision_reply=analysis_reply())

    async def run():
        await StyleAnalyzer(oracle, test_settings).analyze(sample_image_bytes, "medium")
        return threading.get_ident()

    loop_thread = asyncio.run(run())
    assert len(threads) == 1
    assert threads[0] != loop_thread
