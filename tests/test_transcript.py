"""Transcript: append-only log plus one open slot."""

import pytest

from domain.entities import Message, MessageRole


def test_open_slot_streams_and_commits(transcript):
    transcript.append(MessageRole.USER, "أهلا")
    transcript.open(MessageRole.ASSISTANT)
    transcript.update_open("تحت")
    transcript.update_open("تحت أمرك")

    assert transcript.view()[-1].text == "تحت أمرك"
    assert len(transcript.messages) == 1

    committed = transcript.commit_open()

    assert committed.text == "تحت أمرك"
    assert [m.role for m in transcript.messages] == [MessageRole.USER, MessageRole.ASSISTANT]
    assert transcript.open_message is None


def test_transient_roles_never_reach_the_log(transcript):
    with pytest.raises(ValueError):
        transcript.append(MessageRole.LOADING, "")

    transcript.open(MessageRole.TOOL_CALL, "⚙️ جاري addExpense...")
    assert transcript.commit_open() is None
    assert transcript.messages == ()


def test_opening_replaces_the_previous_open_message(transcript):
    transcript.open(MessageRole.LOADING)
    transcript.open(MessageRole.ASSISTANT, "نص")

    assert [m.role for m in transcript.view()] == [MessageRole.ASSISTANT]


def test_update_without_open_message_fails(transcript):
    with pytest.raises(RuntimeError):
        transcript.update_open("x")


def test_version_only_moves_with_the_log(transcript):
    transcript.open(MessageRole.LOADING)
    transcript.discard_open()
    assert transcript.version == 0

    transcript.append(MessageRole.USER, "أهلا")
    assert transcript.version == 1


def test_replace_drops_transient_messages_and_open_slot(transcript):
    transcript.open(MessageRole.ASSISTANT, "نص")
    transcript.replace([
        Message(id="1", role=MessageRole.USER, text="أهلا"),
        Message(id="2", role=MessageRole.LOADING),
    ])

    assert [m.id for m in transcript.messages] == ["1"]
    assert transcript.open_message is None
