"""Unit tests for the turn orchestrator."""

import json
from unittest.mock import AsyncMock

import pytest

from toolbridge_server.errors import (
    ArgumentParseFallback,
    ModelUnavailable,
    ToolInvocationError,
)
from toolbridge_server.provider import ProviderSuccess, build_catalog
from toolbridge_server.services import (
    TurnOrchestrator,
    TurnState,
    parse_call_arguments,
    prepare_history,
)
from toolbridge_server.services.types import (
    AssistantMessage,
    CallIntent,
    CallPolicy,
    DirectAnswer,
    FunctionResultMessage,
    SystemMessage,
    UserMessage,
)
from toolbridge_server.sessions import ToolSession

TOOL_ENTRIES = [
    {
        "name": "create-contact",
        "description": "Create a CRM contact",
        "inputSchema": {
            "type": "object",
            "properties": {"fullname": {"type": "string"}, "email": {"type": "string"}},
        },
    },
    {"name": "list-deals", "description": "List open deals"},
]


class ScriptedModel:
    """Stand-in for ChatModel returning scripted decisions."""

    def __init__(self, *decisions):
        self.decisions = list(decisions)
        self.calls = []

    async def invoke(self, messages, functions, policy=CallPolicy.AUTO):
        self.calls.append(
            {"messages": list(messages), "functions": functions, "policy": policy}
        )
        decision = self.decisions.pop(0)
        if isinstance(decision, Exception):
            raise decision
        return decision


class FakeSessionManager:
    def __init__(self, session):
        self.session = session
        self.requests = 0

    async def get_session(self):
        self.requests += 1
        return self.session


def _orchestrator(model, tool_text="Contact created successfully"):
    transport = AsyncMock()
    transport.request.return_value = ProviderSuccess(
        result={"content": [{"type": "text", "text": tool_text}]}
    )
    session = ToolSession(
        transport=transport,
        chat_model=model,
        catalog=build_catalog(TOOL_ENTRIES),
        started_at="2026-01-01T00:00:00Z",
    )
    return TurnOrchestrator(FakeSessionManager(session), system_prompt="Be helpful."), transport


@pytest.mark.asyncio
async def test_direct_answer_turn():
    """Test a turn the model answers without a tool."""
    model = ScriptedModel(DirectAnswer(text="Hi! How can I help?"))
    orchestrator, transport = _orchestrator(model)

    outcome = await orchestrator.run_turn("Hello")

    assert outcome.state == TurnState.DIRECT_ANSWER
    assert outcome.tool_name is None
    assert [(m.role, m.content) for m in outcome.messages] == [
        ("assistant", "Hi! How can I help?")
    ]
    transport.request.assert_not_called()
    assert len(model.calls) == 1


@pytest.mark.asyncio
async def test_first_pass_offers_full_catalog():
    """Test the first model request: system prompt first, all tools, AUTO."""
    model = ScriptedModel(DirectAnswer(text="ok"))
    orchestrator, _ = _orchestrator(model)
    history = [UserMessage(content="Hi"), AssistantMessage(content="Hello!")]

    await orchestrator.run_turn("Add a contact", history=history)

    first = model.calls[0]
    assert first["policy"] is CallPolicy.AUTO
    assert [f["name"] for f in first["functions"]] == ["create-contact", "list-deals"]
    assert first["messages"] == [
        SystemMessage(content="Be helpful."),
        UserMessage(content="Hi"),
        AssistantMessage(content="Hello!"),
        UserMessage(content="Add a contact"),
    ]


@pytest.mark.asyncio
async def test_tool_turn_produces_three_messages():
    """Test the acknowledgment, tool output, and final answer."""
    arguments = {"fullname": "Jane Doe", "email": "jane@example.com"}
    model = ScriptedModel(
        CallIntent(tool_name="create-contact", raw_arguments=json.dumps(arguments)),
        DirectAnswer(text="Jane Doe has been added."),
    )
    orchestrator, transport = _orchestrator(model)

    outcome = await orchestrator.run_turn("Add Jane Doe, jane@example.com")

    assert outcome.state == TurnState.DONE
    assert outcome.tool_name == "create-contact"
    assert [(m.role, m.content) for m in outcome.messages] == [
        ("assistant", f"Called create-contact with {json.dumps(arguments)}"),
        ("function", "Contact created successfully"),
        ("assistant", "Jane Doe has been added."),
    ]
    transport.request.assert_awaited_once_with(
        "tools/call", {"name": "create-contact", "arguments": arguments}
    )


@pytest.mark.asyncio
async def test_second_pass_replays_call_then_result():
    """Test the follow-up request: original conversation, call, result, NONE."""
    intent = CallIntent(tool_name="create-contact", raw_arguments='{"email": "a@b.c"}')
    model = ScriptedModel(intent, DirectAnswer(text="Added."))
    orchestrator, _ = _orchestrator(model, tool_text="created id 42")

    await orchestrator.run_turn("Add a@b.c")

    second = model.calls[1]
    assert second["policy"] is CallPolicy.NONE
    assert second["functions"] == []
    assert second["messages"] == [
        SystemMessage(content="Be helpful."),
        UserMessage(content="Add a@b.c"),
        AssistantMessage(content="", call_intent=intent),
        FunctionResultMessage(tool_name="create-contact", content="created id 42"),
    ]


@pytest.mark.asyncio
async def test_unparseable_arguments_fall_back_to_empty_object(caplog):
    """Test that bad argument text still invokes the tool, with {}."""
    model = ScriptedModel(
        CallIntent(tool_name="create-contact", raw_arguments="{not json"),
        DirectAnswer(text="Tried."),
    )
    orchestrator, transport = _orchestrator(model)

    outcome = await orchestrator.run_turn("Add someone")

    transport.request.assert_awaited_once_with(
        "tools/call", {"name": "create-contact", "arguments": {}}
    )
    assert outcome.messages[0].content == "Called create-contact with {}"
    assert "calling it with no arguments" in caplog.text


@pytest.mark.asyncio
async def test_unknown_tool_is_not_invoked():
    """Test that a call to a tool outside the catalog fails the turn."""
    model = ScriptedModel(CallIntent(tool_name="delete-everything"))
    orchestrator, transport = _orchestrator(model)

    with pytest.raises(ToolInvocationError) as exc_info:
        await orchestrator.run_turn("Do it")

    assert "delete-everything" in str(exc_info.value)
    transport.request.assert_not_called()


@pytest.mark.asyncio
async def test_tool_failure_skips_second_pass():
    """Test that a failing tool aborts the turn before the follow-up."""
    model = ScriptedModel(CallIntent(tool_name="create-contact", raw_arguments="{}"))
    orchestrator, transport = _orchestrator(model)
    transport.request.return_value = ProviderSuccess(
        result={"content": [{"type": "text", "text": "rejected"}], "isError": True}
    )

    with pytest.raises(ToolInvocationError):
        await orchestrator.run_turn("Add someone")

    assert len(model.calls) == 1


@pytest.mark.asyncio
async def test_model_failure_propagates():
    """Test that a model failure aborts the turn."""
    model = ScriptedModel(ModelUnavailable("model down"))
    orchestrator, transport = _orchestrator(model)

    with pytest.raises(ModelUnavailable):
        await orchestrator.run_turn("Hello")

    transport.request.assert_not_called()


@pytest.mark.asyncio
async def test_every_turn_uses_the_session_manager():
    """Test that turns obtain the session through the manager."""
    model = ScriptedModel(DirectAnswer(text="a"), DirectAnswer(text="b"))
    orchestrator, _ = _orchestrator(model)

    await orchestrator.run_turn("one")
    await orchestrator.run_turn("two")

    assert orchestrator.session_manager.requests == 2


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('{"email": "a@b.c"}', {"email": "a@b.c"}),
        ("", {}),
        ("   ", {}),
    ],
)
def test_parse_call_arguments(raw, expected):
    """Test parsing of valid argument text."""
    assert parse_call_arguments(raw) == expected


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '"text"', "42"])
def test_parse_call_arguments_fallback(raw):
    """Test that non-object argument text raises ArgumentParseFallback."""
    with pytest.raises(ArgumentParseFallback):
        parse_call_arguments(raw)


def test_prepare_history_drops_function_messages():
    """Test that only user and assistant history is kept."""
    history = prepare_history(
        [
            ("user", "Add Jane"),
            ("assistant", "Called create-contact with {}"),
            ("function", "Contact created successfully"),
            ("assistant", "Done."),
        ]
    )

    assert history == [
        UserMessage(content="Add Jane"),
        AssistantMessage(content="Called create-contact with {}"),
        AssistantMessage(content="Done."),
    ]
