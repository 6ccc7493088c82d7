"""
LLM output normalizer: native json blocks, fenced text, repair pass, failures.
"""
from types import SimpleNamespace

import pytest

from api.errors import UpstreamEmptyField, UpstreamEmptyResponse, UpstreamMalformedJSON
from api.normalize import normalize_output, output_text, repair_json, strip_fence
from tests.fakes import chat_raw, responses_raw


# ═══════════════════════════════════════════════
# 1. RESOLUTION ORDER
# ═══════════════════════════════════════════════

class TestResolution:
    def test_native_json_block_wins(self):
        block = SimpleNamespace(content=[
            SimpleNamespace(type="output_text", text="ignored"),
            SimpleNamespace(type="json", json={"insight": " a ", "miniStory": "b"}),
        ])
        raw = responses_raw(text="not json at all", output=[block])
        assert normalize_output(raw) == {"insight": "a", "miniStory": "b"}

    def test_native_json_block_as_dicts(self):
        raw = {"output": [{"content": [{"type": "json", "json": {"insight": "a", "miniStory": "b"}}]}]}
        assert normalize_output(raw) == {"insight": "a", "miniStory": "b"}

    def test_plain_json_text(self):
        raw = responses_raw('{"insight": "a", "miniStory": "b"}')
        assert normalize_output(raw) == {"insight": "a", "miniStory": "b"}

    def test_chat_completion_shape(self):
        raw = chat_raw('{"insight": "a", "miniStory": "b"}')
        assert normalize_output(raw) == {"insight": "a", "miniStory": "b"}

    def test_fenced_json(self):
        raw = responses_raw('```json\n{"insight":"a","miniStory":"b"}\n```')
        assert normalize_output(raw) == {"insight": "a", "miniStory": "b"}

    def test_fence_without_tag(self):
        raw = chat_raw('Here you go:\n```\n{"insight":"a","miniStory":"b"}\n```')
        assert normalize_output(raw) == {"insight": "a", "miniStory": "b"}

    def test_unquoted_keys_and_single_quotes(self):
        raw = responses_raw("{insight: 'a', miniStory: 'b'}")
        assert normalize_output(raw) == {"insight": "a", "miniStory": "b"}

    def test_fields_are_trimmed(self):
        raw = responses_raw('{"insight": "  a\\n", "miniStory": "\\tb "}')
        assert normalize_output(raw) == {"insight": "a", "miniStory": "b"}


# ═══════════════════════════════════════════════
# 2. FAILURES
# ═══════════════════════════════════════════════

class TestFailures:
    def test_empty_text(self):
        with pytest.raises(UpstreamEmptyResponse):
            normalize_output(responses_raw(""))

    def test_whitespace_text(self):
        with pytest.raises(UpstreamEmptyResponse):
            normalize_output(chat_raw("  \n "))

    def test_missing_content(self):
        with pytest.raises(UpstreamEmptyResponse):
            normalize_output(chat_raw(None))

    def test_unrepairable_json(self):
        with pytest.raises(UpstreamMalformedJSON):
            normalize_output(responses_raw('{"insight": "a", "miniStory": '))

    def test_only_one_repair_pass(self):
        # trailing comma needs more than the bare-key/quote pass
        with pytest.raises(UpstreamMalformedJSON):
            normalize_output(responses_raw("{insight: 'a', miniStory: 'b',}"))

    def test_json_array_is_rejected(self):
        with pytest.raises(UpstreamMalformedJSON):
            normalize_output(responses_raw('["a", "b"]'))

    def test_empty_field(self):
        with pytest.raises(UpstreamEmptyField):
            normalize_output(responses_raw('{"insight": "  ", "miniStory": "b"}'))

    def test_missing_field(self):
        with pytest.raises(UpstreamEmptyField):
            normalize_output(responses_raw('{"insight": "a"}'))

    def test_non_string_field(self):
        with pytest.raises(UpstreamEmptyField):
            normalize_output(responses_raw('{"insight": 3, "miniStory": "b"}'))


# ═══════════════════════════════════════════════
# 3. HELPERS
# ═══════════════════════════════════════════════

class TestHelpers:
    def test_strip_fence_passthrough(self):
        assert strip_fence('{"a": 1}') == '{"a": 1}'

    def test_strip_fence_case_insensitive_tag(self):
        assert strip_fence('```JSON\n{"a": 1}```').strip() == '{"a": 1}'

    def test_repair_leaves_quoted_keys(self):
        assert repair_json('{"insight": "a"}') == '{"insight": "a"}'

    def test_repair_mangles_apostrophes(self):
        # known limitation of the blanket quote swap
        assert repair_json("{insight: 'it's'}") == '{"insight": "it"s"}'

    def test_output_text_from_string(self):
        assert output_text("  hi ") == "hi"
