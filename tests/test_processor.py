"""Tests for event processing and result assembly."""

from __future__ import annotations

import copy
import json
import logging

import pytest
from stream_events import (
    chain_end,
    input_delta,
    model_end,
    model_stream,
    text,
    tool_end,
    tool_error,
    tool_start,
    tool_use,
)

from agent_stream.models.content import StreamChannel
from agent_stream.processor import EventProcessor, create_accumulator, get_result, process_event


def _deltas(calls: list[str]) -> list[dict]:
    return [json.loads(call) for call in calls]


def test_create_accumulator_seeds_text_and_processing_channels() -> None:
    acc = create_accumulator()

    assert set(acc.channels) == {"text", "processing"}
    state = acc.channels["text"]
    assert state.content_chain == []
    assert state.current_block is None
    assert state.pending_tool_blocks == []
    assert state.tool_blocks_by_run_id == {}


def test_accumulators_are_independent_per_run() -> None:
    first = create_accumulator()
    second = create_accumulator()

    process_event(first, text("only in first"))

    assert second.channels["text"].current_block is None
    assert first.channels is not second.channels


def test_text_fragments_merge_into_one_block() -> None:
    acc = create_accumulator()
    for fragment in ["Hello ", "wor", "ld"]:
        process_event(acc, text(fragment))

    state = acc.channels["text"]
    assert state.current_block is not None
    assert state.current_block.text == "Hello world"

    result = get_result(acc)
    chains = result.content.content_chains
    assert chains is not None
    assert len(chains[0].steps) == 1
    assert chains[0].steps[0].text == "Hello world"


def test_plain_string_content_is_treated_as_text() -> None:
    acc = create_accumulator()
    process_event(acc, model_stream("Hi "))
    process_event(acc, model_stream("   "))
    process_event(acc, model_stream("there"))

    assert get_result(acc).content.text == "Hi there"


def test_tool_input_accumulates_from_deltas() -> None:
    acc = create_accumulator()
    process_event(acc, tool_use("get_weather", "toolu_1"))
    process_event(acc, input_delta('{"city":'))
    process_event(acc, input_delta('"London"}'))

    block = acc.channels["text"].current_block
    assert block is not None
    assert block.type == "tool_use"
    assert block.input == '{"city":"London"}'


def test_text_block_is_finalized_before_tool_block() -> None:
    acc = create_accumulator()
    process_event(acc, text("Let me check "))
    process_event(acc, tool_use("get_weather", "toolu_1"))

    state = acc.channels["text"]
    assert len(state.content_chain) == 1
    assert state.content_chain[0].type == "text"
    assert state.content_chain[0].text == "Let me check "
    assert state.current_block is not None
    assert state.current_block.type == "tool_use"
    assert [block.id for block in state.pending_tool_blocks] == ["toolu_1"]


def test_single_tool_scenario_produces_one_tool_step() -> None:
    acc = create_accumulator()
    process_event(acc, tool_use("search", "id1"))
    process_event(acc, tool_start("search", "r1"))
    process_event(acc, tool_end("search", "r1", "found it"))

    chains = get_result(acc).content.content_chains
    assert chains is not None
    assert len(chains) == 1
    assert chains[0].channel == "text"
    assert len(chains[0].steps) == 1
    step = chains[0].steps[0]
    assert step.type == "tool_use"
    assert step.id == "id1"
    assert step.name == "search"
    assert step.output == "found it"
    assert step.metadata is None


def test_sequential_tools_without_run_id_get_their_own_outputs() -> None:
    acc = create_accumulator()
    process_event(acc, tool_use("get_weather", "toolu_1"))
    process_event(acc, tool_use("get_time", "toolu_2"))
    assert len(acc.channels["text"].pending_tool_blocks) == 2

    process_event(acc, tool_start("get_weather", None))
    process_event(acc, tool_end("get_weather", None, "Sunny"))
    process_event(acc, tool_start("get_time", None))
    process_event(acc, tool_end("get_time", None, "14:30"))

    state = acc.channels["text"]
    assert state.pending_tool_blocks == []
    assert state.content_chain[0].id == "toolu_1"
    assert state.content_chain[0].output == "Sunny"
    assert state.current_block is not None
    assert state.current_block.id == "toolu_2"
    assert state.current_block.output == "14:30"


def test_tool_end_without_name_or_run_id_falls_back_to_fifo() -> None:
    acc = create_accumulator()
    process_event(acc, tool_use("a", "toolu_a"))
    process_event(acc, tool_use("b", "toolu_b"))

    process_event(acc, tool_end(None, None, "first"))
    process_event(acc, tool_end(None, None, "second"))

    steps = get_result(acc).content.content_chains[0].steps
    assert [(step.id, step.output) for step in steps] == [
        ("toolu_a", "first"),
        ("toolu_b", "second"),
    ]


def test_concurrent_same_name_tools_are_correlated_by_run_id() -> None:
    acc = create_accumulator()
    process_event(acc, tool_use("search", "toolu_1"))
    process_event(acc, tool_use("search", "toolu_2"))
    process_event(acc, tool_start("search", "run-1"))
    process_event(acc, tool_start("search", "run-2"))

    state = acc.channels["text"]
    assert state.pending_tool_blocks == []
    assert set(state.tool_blocks_by_run_id) == {"run-1", "run-2"}

    # Completion order is the reverse of start order
    process_event(acc, tool_end("search", "run-2", "second result"))
    process_event(acc, tool_end("search", "run-1", "first result"))

    steps = get_result(acc).content.content_chains[0].steps
    outputs = {step.id: step.output for step in steps}
    assert outputs == {"toolu_1": "first result", "toolu_2": "second result"}
    assert state.tool_blocks_by_run_id == {}


def test_unmatched_tool_end_leaves_content_state_unchanged() -> None:
    acc = create_accumulator()
    process_event(acc, text("hello"))
    before = copy.deepcopy(acc.channels)

    process_event(acc, tool_end("ghost", "run-x", "nothing"))

    assert acc.channels == before


def test_unmatched_tool_end_only_yields_empty_content() -> None:
    acc = create_accumulator()
    process_event(acc, tool_end("ghost", "run-x", "nothing"))

    result = get_result(acc)
    assert result.content.text == ""
    assert result.content.content_chains is None
    assert "contentChains" not in result.to_dict()["content"]


def test_tool_error_abandons_correlation_without_writing_output() -> None:
    acc = create_accumulator()
    process_event(acc, tool_use("fetch", "toolu_1"))
    process_event(acc, tool_start("fetch", "run-1"))
    process_event(acc, tool_error("fetch", "run-1", "boom"))

    state = acc.channels["text"]
    assert state.tool_blocks_by_run_id == {}
    step = get_result(acc).content.content_chains[0].steps[0]
    assert step.output == ""
    assert step.metadata is None


def test_tool_error_without_started_block_does_not_raise(caplog: pytest.LogCaptureFixture) -> None:
    acc = create_accumulator()
    with caplog.at_level(logging.WARNING):
        process_event(acc, tool_error("fetch", "run-404", RuntimeError("down")))

    assert "matched no started tool block" in caplog.text


def test_flattened_text_skips_tool_steps() -> None:
    acc = create_accumulator()
    process_event(acc, text("Let me check. "))
    process_event(acc, tool_use("search", "toolu_1"))
    process_event(acc, tool_end("search", None, "results"))
    process_event(acc, text("Found it."))

    result = get_result(acc)
    steps = result.content.content_chains[0].steps
    assert [step.type for step in steps] == ["text", "tool_use", "text"]
    assert [step.index for step in steps] == [0, 1, 2]
    assert result.content.text == "Let me check. Found it."


def test_channels_produce_separate_chains() -> None:
    acc = create_accumulator()
    process_event(acc, text("visible", channel="text"))
    process_event(acc, text("thinking", channel="processing"))

    result = get_result(acc)
    chains = result.content.content_chains
    assert chains is not None
    assert [(chain.channel, chain.steps[0].text) for chain in chains] == [
        ("text", "visible"),
        ("processing", "thinking"),
    ]
    assert all(chain.is_complete for chain in chains)
    assert result.content.text == "visible"


def test_events_without_channel_default_to_text() -> None:
    acc = create_accumulator()
    process_event(acc, text("hello", channel=None))

    assert acc.channels["text"].current_block is not None


def test_processing_channel_tool_blocks_stay_on_their_channel() -> None:
    acc = create_accumulator()
    process_event(acc, tool_use("retrieve", "toolu_p1", channel="processing"))

    processing = acc.channels[StreamChannel.PROCESSING]
    text_state = acc.channels[StreamChannel.TEXT]
    assert processing.current_block is not None
    assert processing.current_block.id == "toolu_p1"
    assert len(processing.pending_tool_blocks) == 1
    assert text_state.current_block is None
    assert text_state.pending_tool_blocks == []


def test_unknown_channel_is_created_on_demand() -> None:
    acc = create_accumulator()
    process_event(acc, text("side note", channel="annotations"))

    chains = get_result(acc).content.content_chains
    assert chains is not None
    assert chains[0].channel == "annotations"


def test_get_result_is_idempotent() -> None:
    acc = create_accumulator()
    process_event(acc, text("once"))

    first = get_result(acc)
    second = get_result(acc)

    assert len(first.content.content_chains[0].steps) == 1
    assert len(second.content.content_chains[0].steps) == 1
    assert acc.channels["text"].current_block is None


def test_orphaned_tool_blocks_are_kept_and_marked(caplog: pytest.LogCaptureFixture) -> None:
    acc = create_accumulator()
    process_event(acc, tool_use("slow_tool", "toolu_1"))
    process_event(acc, tool_start("slow_tool", "run-1"))

    with caplog.at_level(logging.WARNING):
        result = get_result(acc)

    step = result.content.content_chains[0].steps[0]
    assert step.output == ""
    assert step.metadata == {"status": "incomplete"}
    assert "never completed" in caplog.text


def test_object_tool_output_is_pretty_printed() -> None:
    acc = create_accumulator()
    calls: list[str] = []
    payload = {"temperature": 22, "unit": "celsius"}
    process_event(acc, tool_use("get_data", "toolu_1"))
    process_event(acc, tool_start("get_data", "run-1"))
    process_event(acc, tool_end("get_data", "run-1", payload), calls.append)

    output_delta = next(d for d in _deltas(calls) if d["delta"]["type"] == "tool_output_chunk")
    assert output_delta["delta"]["chunk"] == json.dumps(payload, indent=2)
    assert output_delta["delta"]["stepId"] == "toolu_1"


def test_delta_envelopes_for_each_stage() -> None:
    acc = create_accumulator()
    calls: list[str] = []
    process_event(acc, text("Hi"), calls.append)
    process_event(acc, tool_use("get_weather", "toolu_1"), calls.append)
    process_event(acc, input_delta('{"city": "Oslo"}'), calls.append)
    process_event(acc, tool_start("get_weather", "run-1"), calls.append)
    process_event(acc, tool_end("get_weather", "run-1", "Cloudy"), calls.append)

    deltas = _deltas(calls)
    assert [d["delta"]["type"] for d in deltas] == [
        "text_chunk",
        "step_started",
        "tool_input_chunk",
        "tool_output_chunk",
    ]
    assert all(d["channel"] == "text" for d in deltas)
    assert deltas[0]["delta"]["text"] == "Hi"
    assert deltas[1]["delta"]["step"] == {
        "index": 1,
        "type": "tool_use",
        "name": "get_weather",
        "id": "toolu_1",
        "input": "",
        "output": "",
    }
    assert deltas[2]["delta"] == {"type": "tool_input_chunk", "stepId": "toolu_1", "chunk": '{"city": "Oslo"}'}
    assert deltas[3]["delta"]["chunk"] == "Cloudy"


def test_failing_delta_sink_does_not_abort_processing(caplog: pytest.LogCaptureFixture) -> None:
    acc = create_accumulator()

    def broken_sink(_: str) -> None:
        raise ConnectionError("socket closed")

    with caplog.at_level(logging.WARNING):
        process_event(acc, text("still here"), broken_sink)

    assert acc.channels["text"].current_block.text == "still here"
    assert "Delta sink failed" in caplog.text


def test_chain_end_merges_final_output_from_several_chains() -> None:
    acc = create_accumulator()
    citation = {"type": "citation", "value": {"url": "https://example.com"}}
    button = {"type": "button", "value": "Retry"}
    process_event(acc, chain_end({"answer": {"attachments": [citation], "metadata": {"a": 1}}}))
    process_event(acc, chain_end({"generation": {"attachments": [button], "metadata": {"b": 2}}}))
    process_event(acc, chain_end({"attachments": [], "metadata": {"a": 3}}, channel="text"))

    content = get_result(acc).content
    assert content.attachments == [citation, button]
    assert content.metadata == {"a": 3, "b": 2}


def test_chain_end_on_processing_channel_is_ignored() -> None:
    acc = create_accumulator()
    process_event(
        acc,
        chain_end({"answer": {"attachments": [{"type": "file"}], "metadata": {"x": 1}}}, channel="processing"),
    )

    content = get_result(acc).content
    assert content.attachments == []
    assert content.metadata == {}


def test_model_end_records_usage_metrics() -> None:
    acc = create_accumulator()
    process_event(acc, model_end({"input_tokens": 10, "output_tokens": 5, "total_tokens": 15}))
    process_event(acc, model_end({"input_tokens": 3, "output_tokens": 2, "total_tokens": 5}, "model-2"))
    process_event(acc, model_end(None))
    process_event(acc, model_end({"input_tokens": 1}, model_id=None))

    result = get_result(acc)
    assert result.metrics is not None
    assert [call.model_id for call in result.metrics.model_calls] == ["model-1", "model-2"]
    assert result.metrics.model_calls[0].node_name == "agent"
    assert result.metrics.total_prompt_tokens == 13
    assert result.metrics.total_completion_tokens == 7
    assert result.metrics.total_tokens == 20
    assert result.trace is not None
    assert result.trace.total_model_calls == 2


def test_no_model_calls_means_no_metrics() -> None:
    acc = create_accumulator()
    process_event(acc, text("hi"))

    assert get_result(acc).metrics is None


def test_malformed_events_are_ignored() -> None:
    acc = create_accumulator()
    for event in [None, "garbage", 42, {}, {"event": "on_chat_model_stream"}, {"event": "custom"}]:
        process_event(acc, event)

    result = get_result(acc)
    assert result.content.content_chains is None
    assert result.trace is not None
    assert [event.type for event in result.trace.events] == ["custom"]


def test_result_to_dict_uses_wire_keys() -> None:
    processor = EventProcessor()
    acc = processor.create_accumulator()
    processor.process_event(acc, text("hello"))
    processor.process_event(acc, tool_start("search", "run-1"))

    payload = processor.get_result(acc).to_dict()
    assert payload["content"]["contentChains"][0]["isComplete"] is True
    assert payload["content"]["text"] == "hello"
    assert payload["trace"]["totalEvents"] == 1
    assert payload["trace"]["events"][0]["nodeName"] == "tools"
    assert payload["metrics"] is None


def test_numeric_tool_identifiers_do_not_abort_processing() -> None:
    acc = create_accumulator()
    process_event(acc, tool_use(42, 7))
    process_event(acc, tool_start(42, "run-1"))
    process_event(acc, tool_end(42, "run-1", "done"))

    step = get_result(acc).content.content_chains[0].steps[0]
    assert (step.id, step.name, step.output) == ("7", "42", "done")


def test_top_level_graph_end_does_not_duplicate_final_output() -> None:
    """Test that the graph wrapper's re-emitted state is not merged twice."""
    acc = create_accumulator()
    citation = {"type": "citation", "value": "doc-1"}
    final_state = {"answer": {"attachments": [citation], "metadata": {"source": "rag"}}}
    process_event(acc, chain_end(final_state, node="generate"))
    process_event(acc, chain_end(final_state, node=None))

    content = get_result(acc).content
    assert content.attachments == [citation]
    assert content.metadata == {"source": "rag"}
