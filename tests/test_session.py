"""Conversation Session: history replay, streaming and tool-call detection."""

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from agent.session import ConversationSession, history_to_messages
from domain.entities import Message, MessageRole
from domain.models import ToolCall
from conftest import Call, ScriptedChatModel


def msg(role, text, id="m"):
    return Message(id=id, role=role, text=text)


def make_session(registry, model, history=(), limit=None):
    return ConversationSession(
        llm=model, registry=registry, system_prompt="system",
        history=history, max_history_messages=limit,
    )


async def collect(stream):
    return [fragment async for fragment in stream]


def test_history_replay_starts_with_user_and_respects_limit():
    history = [
        msg(MessageRole.ASSISTANT, "أهلا بيك"),
        msg(MessageRole.USER, "سجل طلب"),
        msg(MessageRole.ASSISTANT, "تمام"),
        msg(MessageRole.USER, "شكرا"),
        msg(MessageRole.ASSISTANT, ""),
    ]

    replay = history_to_messages(history)
    assert [type(m) for m in replay] == [HumanMessage, AIMessage, HumanMessage]

    last_two = history_to_messages(history, limit=2)
    assert [m.content for m in last_two] == ["شكرا"]
    assert history_to_messages(history, limit=0) == []


def test_session_binds_tools_and_seeds_history(registry):
    model = ScriptedChatModel()
    session = make_session(registry, model, [msg(MessageRole.USER, "أهلا")])

    assert {t.name for t in model.bound_tools} == set(registry.names())
    assert isinstance(session.messages[0], SystemMessage)
    assert session.messages[1].content == "أهلا"


async def test_text_stream(registry):
    model = ScriptedChatModel(["تحت ", "أمرك"])
    session = make_session(registry, model)

    fragments = await collect(session.send_user_message("أهلا"))

    assert [f.text for f in fragments] == ["تحت ", "أمرك"]
    assert all(f.tool_call is None for f in fragments)
    assert session.messages[-1].content == "تحت أمرك"


async def test_tool_call_is_assembled_from_chunks(registry):
    model = ScriptedChatModel([
        "ثانية واحدة. ",
        Call("addExpense", {"description": "كهرباء", "amount": 350}, id="call-42"),
    ])
    session = make_session(registry, model)

    fragments = await collect(session.send_user_message("سجل كهرباء 350"))

    assert fragments[0].text == "ثانية واحدة. "
    assert fragments[-1].tool_call == ToolCall(
        name="addExpense", args={"description": "كهرباء", "amount": 350}, id="call-42",
    )
    assert session.messages[-1].tool_calls[0]["id"] == "call-42"


async def test_tool_result_is_sent_back(registry):
    model = ScriptedChatModel(
        [Call("addExpense", {"description": "كهرباء", "amount": 350})],
        ["اتسجل"],
    )
    session = make_session(registry, model)
    call = (await collect(session.send_user_message("سجل")))[-1].tool_call

    narration = await collect(session.send_tool_result(call, {"success": True, "expenseId": "exp-1"}))

    assert [f.text for f in narration] == ["اتسجل"]
    tool_message = model.requests[1][-1]
    assert isinstance(tool_message, ToolMessage)
    assert tool_message.tool_call_id == call.id
    assert '"expenseId": "exp-1"' in tool_message.content


async def test_tool_call_during_narration_is_ignored(registry):
    model = ScriptedChatModel(
        [Call("getDashboardSummary", {})],
        ["الملخص", Call("addExpense", {"description": "x", "amount": 1}, id="call-2")],
        ["أهلا"],
    )
    session = make_session(registry, model)
    call = (await collect(session.send_user_message("ملخص")))[-1].tool_call

    narration = await collect(session.send_tool_result(call, {}))

    assert [f.tool_call for f in narration] == [None]
    assert session.messages[-1].tool_calls == []

    await collect(session.send_user_message("أهلا"))

    history = model.requests[2]
    for i, message in enumerate(history):
        if isinstance(message, AIMessage) and message.tool_calls:
            answered = {m.tool_call_id for m in history[i + 1:] if isinstance(m, ToolMessage)}
            assert {c["id"] for c in message.tool_calls} <= answered


async def test_abandon_turn_drops_partial_tool_exchange(registry):
    model = ScriptedChatModel([Call("getDashboardSummary", {})])
    session = make_session(registry, model, [msg(MessageRole.USER, "قديم")])
    await collect(session.send_user_message("ملخص"))
    assert len(session.messages) == 4

    session.abandon_turn()

    assert [m.content for m in session.messages[1:]] == ["قديم", "ملخص"]
