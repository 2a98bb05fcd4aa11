import json

import pytest

from sesame.database.json_store import JsonStore
from sesame.database.session_store import SessionStore
from sesame.model.chat import (
    DEFAULT_SESSION_TITLE,
    Attachment,
    GroundingSource,
    Message,
    MessageRole,
)


class TestSessionStoreStartup:
    def test_first_run_creates_one_active_session(self, store):
        sessions = store.list_sessions()
        assert len(sessions) == 1
        assert sessions[0].title == DEFAULT_SESSION_TITLE
        assert sessions[0].messages == []
        assert store.active_session_id == sessions[0].id

    def test_first_run_persists_the_fresh_session(self, store, json_store):
        raw = json_store.load("test_sessions")
        assert isinstance(raw, list)
        assert raw[0]["id"] == store.list_sessions()[0].id

    def test_loads_persisted_sessions_and_activates_first(self, json_store):
        first = SessionStore(json_store, key="test_sessions")
        older = first.active_session_id
        newer = first.create_session().id

        reloaded = SessionStore(json_store, key="test_sessions")
        assert [s.id for s in reloaded.list_sessions()] == [newer, older]
        assert reloaded.active_session_id == newer

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps({"unexpected": "shape"}),
            json.dumps([{"id": "x", "messages": "nope"}]),
            json.dumps([]),
        ],
    )
    def test_corrupt_or_empty_slot_falls_back_to_fresh_session(self, json_store, content):
        json_store.path_for("test_sessions").write_text(content, encoding="utf-8")

        store = SessionStore(json_store, key="test_sessions")
        assert len(store.list_sessions()) == 1
        assert store.active_session.title == DEFAULT_SESSION_TITLE


class TestSessionStoreOperations:
    def test_create_session_is_prepended_and_active(self, store):
        original = store.active_session_id
        created = store.create_session()

        assert store.list_sessions()[0].id == created.id
        assert store.list_sessions()[1].id == original
        assert store.active_session_id == created.id

    def test_session_ids_are_unique(self, store):
        for _ in range(10):
            store.create_session()
        ids = [s.id for s in store.list_sessions()]
        assert len(ids) == len(set(ids))

    def test_select_unknown_session_is_ignored(self, store):
        active = store.active_session_id
        assert store.select_session("missing") is False
        assert store.active_session_id == active

    def test_select_session(self, store):
        first = store.active_session_id
        store.create_session()
        assert store.select_session(first) is True
        assert store.active_session_id == first

    def test_delete_active_session_activates_first_remaining(self, store):
        a = store.active_session_id
        b = store.create_session().id
        c = store.create_session().id

        store.delete_session(c)
        assert [s.id for s in store.list_sessions()] == [b, a]
        assert store.active_session_id == b

    def test_delete_inactive_session_keeps_active(self, store):
        a = store.active_session_id
        b = store.create_session().id

        store.delete_session(a)
        assert store.active_session_id == b

    def test_delete_last_session_creates_fresh_one(self, store):
        only = store.active_session_id
        store.delete_session(only)

        sessions = store.list_sessions()
        assert len(sessions) == 1
        assert sessions[0].id != only
        assert store.active_session_id == sessions[0].id

    def test_delete_unknown_session_is_ignored(self, store):
        before = store.list_sessions()
        assert store.delete_session("missing") is False
        assert store.list_sessions() == before

    def test_store_is_never_empty_across_create_and_delete(self, store):
        for _ in range(3):
            store.create_session()
        for _ in range(6):
            store.delete_session(store.list_sessions()[-1].id)
            assert len(store.list_sessions()) >= 1
            assert store.active_session is not None

    def test_mutations_replace_the_session_list(self, store):
        before = store.list_sessions()
        store.create_session()
        assert store.list_sessions() is not before
        assert len(before) == 1


class TestAppendMessage:
    def test_first_message_sets_title_once(self, store):
        sid = store.active_session_id
        store.append_message(sid, Message(role=MessageRole.USER, content="Summarize recent AI news"))
        assert store.get_session(sid).title == "Summarize recent AI news"

        store.append_message(sid, Message(role=MessageRole.ASSISTANT, content="Sure"))
        store.append_message(sid, Message(role=MessageRole.USER, content="Something else entirely"))
        assert store.get_session(sid).title == "Summarize recent AI news"

    def test_title_is_truncated_to_30_characters(self, store):
        sid = store.active_session_id
        text = "Explain the difference between processes and threads in detail"
        store.append_message(sid, Message(role=MessageRole.USER, content=text))
        assert store.get_session(sid).title == text[:30]

    def test_attachment_only_message_gets_image_chat_title(self, store):
        sid = store.active_session_id
        att = Attachment(url="data:image/png;base64,AAAA", base64="AAAA", name="cat.png")
        store.append_message(sid, Message(role=MessageRole.USER, content="", attachments=[att]))
        assert store.get_session(sid).title == "Image Chat"

    def test_messages_are_appended_in_order(self, store):
        sid = store.active_session_id
        contents = ["one", "two", "three"]
        for text in contents:
            store.append_message(sid, Message(role=MessageRole.USER, content=text))
        assert [m.content for m in store.get_session(sid).messages] == contents

    def test_append_to_unknown_session_is_ignored(self, store):
        assert store.append_message("missing", Message(role=MessageRole.USER, content="hi")) is None


class TestPersistence:
    def test_round_trip_preserves_sessions_and_messages(self, json_store):
        store = SessionStore(json_store, key="test_sessions")
        sid = store.active_session_id
        att = Attachment(url="data:image/jpeg;base64,AAAA", base64="AAAA", name="a.jpg", mime_type="image/jpeg")
        store.append_message(sid, Message(role=MessageRole.USER, content="Look at this", attachments=[att]))
        store.append_message(
            sid,
            Message(
                role=MessageRole.ASSISTANT,
                content="**Nice** picture",
                thinking="Let me look",
                sources=[GroundingSource(title="Example", uri="https://example.com")],
            ),
        )
        store.append_message(
            sid,
            Message(role=MessageRole.ASSISTANT, content="oops", is_error=True),
        )
        store.create_session()

        reloaded = SessionStore(json_store, key="test_sessions")
        assert reloaded.list_sessions() == store.list_sessions()

    def test_every_change_is_written(self, json_store):
        store = SessionStore(json_store, key="test_sessions")
        store.create_session()
        assert len(json_store.load("test_sessions")) == 2

        store.delete_session(store.active_session_id)
        assert len(json_store.load("test_sessions")) == 1


class TestSubscribe:
    def test_listener_sees_every_change(self, store):
        events = []
        store.subscribe(lambda sessions, active: events.append((len(sessions), active)))

        created = store.create_session()
        store.select_session(store.list_sessions()[1].id)
        store.delete_session(created.id)

        assert len(events) == 3
        assert events[0] == (2, created.id)

    def test_unsubscribe_stops_notifications(self, store):
        events = []
        unsubscribe = store.subscribe(lambda sessions, active: events.append(active))
        unsubscribe()
        store.create_session()
        assert events == []

    def test_failing_listener_does_not_break_mutation(self, store):
        def broken(sessions, active):
            raise RuntimeError("boom")

        store.subscribe(broken)
        created = store.create_session()
        assert store.active_session_id == created.id


def test_json_store_missing_key_returns_none(tmp_path):
    assert JsonStore(str(tmp_path)).load("nothing") is None


def test_json_store_failed_save_keeps_old_file_and_no_temp(tmp_path):
    json_store = JsonStore(str(tmp_path))
    json_store.save("slot", [{"id": "kept"}])

    with pytest.raises(TypeError):
        json_store.save("slot", [{"id": object()}])

    assert json_store.load("slot") == [{"id": "kept"}]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["slot.json"]
