from datetime import timedelta, timezone

from jobflow.models import ChatRole, Job, JobStatus
from jobflow.services.chat_service import CHAT_ERROR, EMPTY_REPLY, WELCOME_ID, CoachChat


def _jobs(*statuses):
    return [Job(company=f"Co{i}", role="Dev", status=status) for i, status in enumerate(statuses)]


def test_welcome_message(fake_ai):
    chat = CoachChat(fake_ai, _jobs(JobStatus.APPLIED, JobStatus.OFFER), "Alex Developer")

    assert len(chat.messages) == 1
    welcome = chat.messages[0]
    assert welcome.id == WELCOME_ID
    assert welcome.role == ChatRole.MODEL
    assert welcome.text.startswith("Hi Alex!")
    assert "your 2 applications" in welcome.text


def test_send_appends_user_and_reply(fake_ai):
    chat = CoachChat(fake_ai, _jobs(JobStatus.APPLIED), "Alex")
    fake_ai.chat_reply = "Let's practice!"

    reply = chat.send("Can we roleplay?")

    assert reply.text == "Let's practice!"
    assert [m.role for m in chat.messages] == [ChatRole.MODEL, ChatRole.USER, ChatRole.MODEL]
    call = fake_ai.calls[-1][1]
    assert call["messages"] == [{"role": "user", "content": "Can we roleplay?"}]
    assert "Total Applications: 1" in call["system_prompt"]


def test_history_carries_previous_turns(fake_ai):
    chat = CoachChat(fake_ai, _jobs(), "Alex")
    chat.send("First")
    chat.send("Second")

    messages = fake_ai.calls[-1][1]["messages"]
    assert [m["role"] for m in messages] == ["user", "model", "user"]
    assert messages[-1]["content"] == "Second"


def test_blank_messages_are_ignored(fake_ai):
    chat = CoachChat(fake_ai, _jobs(), "Alex")
    assert chat.send("   ") is None
    assert len(chat.messages) == 1
    assert fake_ai.calls == []


def test_failure_appends_apology(fake_ai):
    chat = CoachChat(fake_ai, _jobs(), "Alex")
    fake_ai.fail = True

    reply = chat.send("Hello?")

    assert reply.text == CHAT_ERROR
    assert chat.messages[-2].text == "Hello?"
    # The failed turn is not part of the provider history
    fake_ai.fail = False
    chat.send("Again")
    assert fake_ai.calls[-1][1]["messages"] == [{"role": "user", "content": "Again"}]


def test_empty_reply_placeholder(fake_ai):
    chat = CoachChat(fake_ai, _jobs(), "Alex")
    fake_ai.chat_reply = ""
    assert chat.send("Hi").text == EMPTY_REPLY


def test_refresh_context_only_when_stats_change(fake_ai):
    jobs = _jobs(JobStatus.APPLIED)
    chat = CoachChat(fake_ai, jobs, "Alex")
    chat.send("Hi")

    assert chat.refresh_context(jobs) is False

    jobs = jobs + _jobs(JobStatus.INTERVIEW)
    assert chat.refresh_context(jobs) is True
    assert "Total Applications: 2" in chat.system_instruction
    # Transcript stays, provider conversation restarts
    assert len(chat.messages) == 3
    chat.send("Next")
    assert fake_ai.calls[-1][1]["messages"] == [{"role": "user", "content": "Next"}]


def test_refresh_context_picks_up_new_name(fake_ai):
    jobs = _jobs(JobStatus.APPLIED)
    chat = CoachChat(fake_ai, jobs, "Alex Developer")

    assert chat.refresh_context(jobs, "Alex Developer") is False
    assert chat.refresh_context(jobs, "Sam Rivera") is True
    assert "named Sam Rivera" in chat.system_instruction


def test_messages_are_stamped_in_utc(fake_ai):
    chat = CoachChat(fake_ai, _jobs(), "Alex")
    reply = chat.send("Hi")
    assert reply.timestamp.tzinfo == timezone.utc
    assert chat.messages[0].timestamp.utcoffset() == timedelta(0)
