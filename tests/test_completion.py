"""
Tests for the structured completion engine.

Covers fence stripping, parsing and validation, the repair conversation,
retry budget exhaustion and provider error propagation.
"""

import json

import pytest

from quipsync.models import CompletionRequest, ConversationTurn, ScriptResult, StyleProfile
from quipsync.utils.completion import (
    complete_json,
    complete_structured,
    opening_conversation,
    parse_structured_output,
    render_json_guard,
    strip_code_fences,
    with_repair_turns,
)
from quipsync.utils.errors import (
    GenerationError,
    ProviderError,
    SchemaValidationError,
    MAX_ERROR_DETAIL_CHARS,
)


def script_request(retry_budget=2, **overrides):
    params = dict(
        instruction_text="Write transition scripts for the bakery story.",
        target_schema=ScriptResult,
        max_output_tokens=1600,
        temperature=0.7,
        retry_budget=retry_budget,
    )
    params.update(overrides)
    return CompletionRequest(**params)


class TestStripCodeFences:
    """Test lenient fence removal."""

    def test_strips_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_fence_tag_is_case_insensitive(self):
        assert strip_code_fences('```JSON\n{"a": 1}\n```') == '{"a": 1}'

    def test_trims_surrounding_whitespace(self):
        assert strip_code_fences('   \n{"a": 1}\n\n  ') == '{"a": 1}'

    def test_unfenced_text_unchanged(self):
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'

    def test_none_becomes_empty(self):
        assert strip_code_fences(None) == ""


class TestParseStructuredOutput:
    """Test parsing plus strict schema validation."""

    def test_valid_script_result(self, valid_script_json, valid_script_result):
        outcome = parse_structured_output(valid_script_json, ScriptResult)
        assert outcome.ok
        assert outcome.value == valid_script_result

    def test_fenced_valid_output(self, valid_script_json, valid_script_result):
        outcome = parse_structured_output(f"```json\n{valid_script_json}\n```", ScriptResult)
        assert outcome.ok
        assert outcome.value == valid_script_result

    @pytest.mark.parametrize("count", [2, 4])
    def test_wrong_script_count_rejected(self, valid_script_result, count):
        entry = valid_script_result["scripts"][0]
        valid_script_result["scripts"] = [entry] * count
        outcome = parse_structured_output(json.dumps(valid_script_result), ScriptResult)
        assert not outcome.ok
        assert "scripts" in outcome.error

    def test_extra_key_rejected(self, valid_script_result):
        valid_script_result["mood"] = "sunny"
        outcome = parse_structured_output(json.dumps(valid_script_result), ScriptResult)
        assert not outcome.ok

    def test_extra_key_in_script_entry_rejected(self, valid_script_result):
        valid_script_result["scripts"][1]["durationSeconds"] = 12
        outcome = parse_structured_output(json.dumps(valid_script_result), ScriptResult)
        assert not outcome.ok

    def test_empty_string_field_rejected(self, valid_script_result):
        valid_script_result["whyThisWorks"] = ""
        outcome = parse_structured_output(json.dumps(valid_script_result), ScriptResult)
        assert not outcome.ok

    def test_number_not_coerced_to_string(self, valid_script_result):
        valid_script_result["songAnalysis"] = 42
        outcome = parse_structured_output(json.dumps(valid_script_result), ScriptResult)
        assert not outcome.ok

    def test_missing_key_rejected(self, valid_script_result):
        del valid_script_result["storyDetails"]
        outcome = parse_structured_output(json.dumps(valid_script_result), ScriptResult)
        assert not outcome.ok
        assert "storyDetails" in outcome.error

    def test_invalid_json_reported(self):
        outcome = parse_structured_output("Sure! Here are your scripts:", ScriptResult)
        assert not outcome.ok
        assert outcome.error.startswith("Invalid JSON")

    def test_empty_output_reported(self):
        outcome = parse_structured_output("   ", ScriptResult)
        assert not outcome.ok

    def test_json_array_rejected(self):
        outcome = parse_structured_output("[]", ScriptResult)
        assert not outcome.ok
        assert "JSON object" in outcome.error

    def test_style_profile_requires_nonempty_lists(self, valid_style_profile):
        valid_style_profile["samplePhrases"] = []
        outcome = parse_structured_output(json.dumps(valid_style_profile), StyleProfile)
        assert not outcome.ok

    def test_valid_style_profile(self, valid_style_json, valid_style_profile):
        outcome = parse_structured_output(valid_style_json, StyleProfile)
        assert outcome.ok
        assert outcome.value == valid_style_profile


class TestConversation:
    """Test the opening turn and repair turns."""

    def test_opening_turn_has_guard_then_instruction(self):
        request = script_request()
        conversation = opening_conversation(request)

        assert len(conversation) == 1
        turn = conversation[0]
        assert turn.role == "user"
        assert turn.content.startswith(render_json_guard(ScriptResult.example_json()))
        assert turn.content.endswith(request.instruction_text)
        assert "You MUST return ONLY valid, parseable JSON" in turn.content
        assert '"deliveryNotes": "string"' in turn.content

    def test_custom_example_shape_used(self):
        request = script_request(example_shape='{"custom": "shape"}')
        conversation = opening_conversation(request)
        assert 'Example shape:\n{"custom": "shape"}' in conversation[0].content

    def test_repair_turns_extend_without_mutating(self):
        original = (ConversationTurn("user", "first"),)
        extended = with_repair_turns(original, "not json", "Invalid JSON: boom")

        assert len(original) == 1
        assert len(extended) == 3
        assert extended[1] == ConversationTurn("assistant", "not json")
        assert extended[2].role == "user"
        assert extended[2].content == (
            "Your previous output failed JSON validation:\nInvalid JSON: boom\n\n"
            "Return ONLY valid JSON that matches the required shape."
        )

    def test_repair_turn_truncates_error(self):
        long_error = "x" * (MAX_ERROR_DETAIL_CHARS * 3)
        extended = with_repair_turns((ConversationTurn("user", "first"),), "raw", long_error)
        assert ("x" * MAX_ERROR_DETAIL_CHARS) in extended[2].content
        assert ("x" * (MAX_ERROR_DETAIL_CHARS + 1)) not in extended[2].content

    def test_invalid_role_rejected(self):
        with pytest.raises(ValueError):
            ConversationTurn("system", "hi")


class TestCompleteStructured:
    """Test the parse/validate/repair loop."""

    def test_first_attempt_success(self, make_provider, valid_script_json, valid_script_result):
        provider = make_provider(valid_script_json)
        result = complete_structured(provider, script_request())

        assert result == valid_script_result
        assert provider.call_count == 1

    def test_first_attempt_success_fenced(self, make_provider, valid_script_json, valid_script_result):
        provider = make_provider(f"```json\n{valid_script_json}\n```")
        result = complete_structured(provider, script_request())

        assert result == valid_script_result
        assert provider.call_count == 1

    def test_generation_parameters_passed_to_provider(self, make_provider, valid_script_json):
        provider = make_provider(valid_script_json)
        complete_structured(provider, script_request(max_output_tokens=1234, temperature=0.3, model="m-1"))

        call = provider.calls[0]
        assert call["max_output_tokens"] == 1234
        assert call["temperature"] == 0.3
        assert call["model"] == "m-1"

    def test_repairs_after_invalid_output(self, make_provider, valid_script_json, valid_script_result):
        provider = make_provider("```json\n{\"storyDetails\": \"only this\"}\n```", valid_script_json)
        result = complete_structured(provider, script_request())

        assert result == valid_script_result
        assert provider.call_count == 2
        second_turns = provider.calls[1]["turns"]
        assert [t.role for t in second_turns] == ["user", "assistant", "user"]
        assert second_turns[1].content == "```json\n{\"storyDetails\": \"only this\"}\n```"
        assert second_turns[2].content.startswith("Your previous output failed JSON validation:\n")

    def test_conversation_grows_two_turns_per_failure(self, make_provider):
        provider = make_provider("nope")
        with pytest.raises(SchemaValidationError):
            complete_structured(provider, script_request(retry_budget=3))

        assert [len(call["turns"]) for call in provider.calls] == [1, 3, 5, 7]
        first_turn = provider.calls[0]["turns"][0]
        for call in provider.calls:
            assert call["turns"][0] == first_turn

    @pytest.mark.parametrize("retry_budget", [0, 1, 2])
    def test_exhaustion_after_budget_plus_one_calls(self, make_provider, retry_budget):
        provider = make_provider('{"storyDetails": "x"}')
        with pytest.raises(SchemaValidationError) as exc_info:
            complete_structured(provider, script_request(retry_budget=retry_budget))

        assert provider.call_count == retry_budget + 1
        assert exc_info.value.attempts == retry_budget + 1
        assert exc_info.value.last_error
        assert len(exc_info.value.last_error) <= MAX_ERROR_DETAIL_CHARS

    def test_schema_validation_error_is_generation_error(self, make_provider):
        provider = make_provider("nope")
        with pytest.raises(GenerationError) as exc_info:
            complete_structured(provider, script_request(retry_budget=0))
        assert exc_info.value.kind == "schema_validation"
        assert exc_info.value.stage == "validation"

    def test_provider_error_not_retried(self, make_provider):
        provider = make_provider(ProviderError("fake", "connection reset"))
        with pytest.raises(ProviderError):
            complete_structured(provider, script_request())
        assert provider.call_count == 1

    def test_provider_error_on_retry_propagates(self, make_provider):
        provider = make_provider("nope", ProviderError("fake", "timed out"))
        with pytest.raises(ProviderError):
            complete_structured(provider, script_request())
        assert provider.call_count == 2

    def test_complete_json_wrapper(self, make_provider, valid_style_json, valid_style_profile):
        provider = make_provider(valid_style_json)
        result = complete_json(provider, "Analyze my scripts", StyleProfile, temperature=0.5)
        assert result == valid_style_profile
        assert provider.calls[0]["temperature"] == 0.5


class TestCompletionRequest:
    def test_negative_retry_budget_rejected(self):
        with pytest.raises(ValueError):
            script_request(retry_budget=-1)

    def test_example_defaults_to_schema_example(self):
        request = script_request()
        assert json.loads(request.example) == ScriptResult.EXAMPLE_SHAPE


class TestBlankReplies:
    """Blank model output must not produce an empty turn on the retry."""

    @pytest.mark.parametrize("blank", ["", "   \n", None])
    def test_blank_output_replaced_in_repair_turn(self, blank):
        extended = with_repair_turns((ConversationTurn("user", "first"),), blank, "Empty response")
        assert extended[1] == ConversationTurn("assistant", "(empty response)")

    def test_every_retry_turn_has_content(self, make_provider, valid_script_json, valid_script_result):
        provider = make_provider("", valid_script_json)

        result = complete_structured(provider, script_request())

        assert result == valid_script_result
        assert provider.call_count == 2
        for turn in provider.calls[1]["turns"]:
            assert turn.content.strip()
        assert provider.calls[1]["turns"][1].content == "(empty response)"
