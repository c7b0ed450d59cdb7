import random

from aipipe_agent.domain.models import Message
from aipipe_agent.providers.simulated import (
    CAPABILITIES_TEXT,
    FIBONACCI_SNIPPET,
    MATH_SNIPPET,
    DATETIME_SNIPPET,
    DEMO_SNIPPET,
    SimulatedProvider,
    extract_search_query,
    generate_sample_code,
)
from aipipe_agent.tools.registry import ToolRegistry


def _query(text, rng=None):
    provider = SimulatedProvider(rng=rng)
    return provider.query([Message(role="user", content=text)], ToolRegistry().describe())


def test_multi_word_topic_is_implicit_search():
    reply = _query("Rust Ownership Rules")
    assert len(reply.tool_calls) == 1
    call = reply.tool_calls[0]
    assert call.name == "google_search"
    assert call.arguments == {"query": "Rust Ownership Rules"}
    assert call.id.startswith("search_")
    assert '"Rust Ownership Rules"' in reply.output_text


def test_workflow_intent_uses_lowercased_message():
    reply = _query("Run the Text Pipeline")
    call = reply.tool_calls[0]
    assert call.name == "ai_pipe"
    assert call.arguments == {"workflow": "run the text pipeline"}
    assert call.id.startswith("pipe_")


def test_explicit_search_extracts_query():
    reply = _query("search for rust ownership")
    call = reply.tool_calls[0]
    assert call.name == "google_search"
    assert call.arguments == {"query": "rust ownership"}


def test_single_word_find_falls_back_to_general_information():
    reply = _query("find")
    assert reply.tool_calls[0].arguments == {"query": "general information"}


def test_fibonacci_generates_code_call():
    reply = _query("calculate fibonacci")
    call = reply.tool_calls[0]
    assert call.name == "execute_js"
    assert call.arguments["code"] == FIBONACCI_SNIPPET
    assert call.id.startswith("js_")
    assert "Fibonacci" in reply.output_text


def test_math_intent_description():
    reply = _query("math")
    assert reply.tool_calls[0].arguments["code"] == MATH_SNIPPET
    assert reply.output_text == "I'll perform some mathematical calculations for you."


def test_capabilities_have_no_tool_call():
    for text in ("help", "what can you do", "capabilities?"):
        reply = _query(text)
        assert reply.tool_calls is None
        assert reply.output_text == CAPABILITIES_TEXT


def test_generic_fallback_is_seedable():
    first = _query("hello", rng=random.Random(7)).output_text
    second = _query("hello", rng=random.Random(7)).output_text
    assert first == second
    reply = _query("hello", rng=random.Random(7))
    assert reply.tool_calls is None


def test_generic_fallback_covers_all_texts():
    seen = {_query("hmm", rng=random.Random(seed)).output_text for seed in range(50)}
    assert len(seen) == 3
    assert any('"hmm"' in text for text in seen)


def test_only_latest_user_message_is_classified():
    provider = SimulatedProvider()
    reply = provider.query(
        [
            Message(role="user", content="calculate fibonacci"),
            Message(role="assistant", content="done"),
            Message(role="user", content="help"),
        ],
        (),
    )
    assert reply.output_text == CAPABILITIES_TEXT


def test_extract_search_query_drops_stop_words_and_short_words():
    assert extract_search_query("please look up information about the python gil") == "python gil"
    assert extract_search_query("search me an ox") == "general information"


def test_generate_sample_code_preference_order():
    assert generate_sample_code("fibonacci math") == FIBONACCI_SNIPPET
    assert generate_sample_code("calculate the date") == MATH_SNIPPET
    assert generate_sample_code("run date") == DATETIME_SNIPPET
    assert generate_sample_code("run it") == DEMO_SNIPPET
