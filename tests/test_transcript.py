"""Unit tests for the transcript module."""
import pytest

from chatrelay.config import STORAGE_KEY
from chatrelay.transcript import (
    FileStorage,
    InMemoryStorage,
    Message,
    Storage,
    TranscriptStore,
    create_storage,
)


class BrokenStorage(Storage):
    """Storage whose every operation fails, like a full or read-only disk."""

    def get(self, key):
        raise OSError("read failed")

    def set(self, key, value):
        raise OSError("write failed")

    def remove(self, key):
        raise OSError("remove failed")

    @property
    def backend_type(self):
        return "broken"


class TestStorageFactory:
    """Tests for storage factory function."""

    def test_create_memory_storage(self):
        assert isinstance(create_storage("memory"), InMemoryStorage)

    def test_create_file_storage(self, tmp_path):
        storage = create_storage("file", path=tmp_path)
        assert isinstance(storage, FileStorage)
        assert storage.root == tmp_path

    def test_unsupported_backend_raises_error(self):
        with pytest.raises(ValueError, match="Unsupported storage backend"):
            create_storage("redis")

    def test_storage_is_abstract(self):
        with pytest.raises(TypeError):
            Storage()  # type: ignore


class TestFileStorage:
    """Tests for FileStorage."""

    def test_set_get_remove(self, tmp_path):
        storage = FileStorage(tmp_path / "history")
        assert storage.get("chat-history") is None

        storage.set("chat-history", "[]")
        assert storage.get("chat-history") == "[]"
        assert (tmp_path / "history" / "chat-history.json").exists()

        storage.remove("chat-history")
        assert storage.get("chat-history") is None
        storage.remove("chat-history")  # removing twice is fine

    def test_unsafe_key_stays_inside_root(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.set("../escape", "x")
        assert storage.get("../escape") == "x"
        assert list(tmp_path.parent.glob("escape*")) == []


class TestTranscriptStore:
    """Tests for TranscriptStore."""

    def test_round_trip_through_storage(self, memory_storage):
        store = TranscriptStore(memory_storage)
        store.append(Message.create("user", "hello"))
        store.append(Message.create("assistant", "Hi there"))

        restored = TranscriptStore(memory_storage)
        messages = restored.load()

        assert [(m.role, m.content) for m in messages] == [("user", "hello"), ("assistant", "Hi there")]
        assert [m.id for m in messages] == [m.id for m in store.messages]

    def test_load_accepts_entries_without_id(self):
        storage = InMemoryStorage({STORAGE_KEY: '[{"role": "user", "content": "hi"}]'})
        messages = TranscriptStore(storage).load()
        assert messages[0].id is None
        assert messages[0].content == "hi"

    @pytest.mark.parametrize("raw", ["not json", '{"role": "user"}', '[{"role": "robot", "content": ""}]'])
    def test_corrupt_persisted_transcript_loads_empty(self, raw):
        store = TranscriptStore(InMemoryStorage({STORAGE_KEY: raw}))
        assert store.load() == []

    def test_storage_failures_are_not_fatal(self):
        store = TranscriptStore(BrokenStorage())
        assert store.load() == []
        store.append(Message.create("user", "still works"))
        store.clear()
        assert len(store) == 0

    def test_every_mutation_persists(self, memory_storage):
        store = TranscriptStore(memory_storage)
        store.open_assistant()
        store.append_delta("Hel")
        assert '"Hel"' in memory_storage.get(STORAGE_KEY)
        store.append_delta("lo")
        assert '"Hello"' in memory_storage.get(STORAGE_KEY)

    def test_append_delta_requires_open_message(self, memory_storage):
        store = TranscriptStore(memory_storage)
        store.append(Message.create("assistant", "done"))
        with pytest.raises(RuntimeError, match="No assistant message is open"):
            store.append_delta("more")

    def test_append_closes_open_message(self, memory_storage):
        store = TranscriptStore(memory_storage)
        store.open_assistant()
        store.append(Message.create("user", "next"))
        assert store.open_message is None

    def test_truncate_drops_open_message(self, memory_storage):
        store = TranscriptStore(memory_storage)
        store.append(Message.create("user", "q"))
        store.open_assistant()
        store.append_delta("partial")

        store.truncate(0)

        assert len(store) == 0
        assert store.open_message is None
        assert memory_storage.get(STORAGE_KEY) == "[]"

    def test_truncate_keeps_earlier_equal_message_separate(self, memory_storage):
        """An earlier message equal in value to the open one does not keep it open."""
        store = TranscriptStore(memory_storage)
        first = store.append(Message(role="assistant", content=""))
        store.open_assistant()
        store._open.id = first.id
        store._open.timestamp = first.timestamp

        store.truncate(1)

        assert store.open_message is None

    def test_remove_last(self, memory_storage):
        store = TranscriptStore(memory_storage)
        assert store.remove_last() is None
        store.append(Message.create("user", "a"))
        last = store.append(Message.create("user", "b"))
        assert store.remove_last() is last
        assert [m.content for m in store] == ["a"]

    def test_clear_removes_persisted_copy(self, memory_storage):
        store = TranscriptStore(memory_storage)
        store.append(Message.create("user", "a"))
        store.clear()
        assert STORAGE_KEY not in memory_storage
        assert store.last is None

    def test_listeners_receive_snapshots(self, memory_storage):
        store = TranscriptStore(memory_storage)
        seen = []
        unsubscribe = store.subscribe(lambda messages: seen.append([m.content for m in messages]))

        store.open_assistant()
        store.append_delta("a")
        unsubscribe()
        store.append_delta("b")

        assert seen == [[""], ["a"]]

    def test_failing_listener_does_not_block_others(self, memory_storage):
        store = TranscriptStore(memory_storage)
        seen = []

        def broken(messages):
            raise ValueError("listener bug")

        store.subscribe(broken)
        store.subscribe(lambda messages: seen.append(len(messages)))
        store.append(Message.create("user", "x"))

        assert seen == [1]

    def test_to_wire_strips_client_fields(self, memory_storage):
        store = TranscriptStore(memory_storage)
        store.append(Message.create("user", "hello"))
        wire = [m.model_dump() for m in store.to_wire()]
        assert wire == [{"role": "user", "content": "hello"}]
