import os
from types import SimpleNamespace

import pytest

# Settings() requires a key at import time.
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from app.config import settings
from app.llm import assistant


class FakePage:
    """Mimics both an awaited page (``.data``) and an auto-paginating listing."""

    def __init__(self, items):
        self.data = list(items)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self.data:
            yield item


def text_message(role, value):
    return SimpleNamespace(
        role=role,
        content=[SimpleNamespace(type="text", text=SimpleNamespace(value=value))],
    )


class FakeOpenAI:
    """In-memory stand-in for the parts of AsyncOpenAI the service uses."""

    def __init__(self, statuses=("completed",), reply="The answer.", preexisting=()):
        self.calls = []
        self.statuses = list(statuses)
        self.reply = reply
        self.files_store = {}
        self.assistants_store = {}
        self.vector_stores_store = {}
        self.threads_store = {}
        self.fail_on = None
        self._counter = 0
        stores = {
            "file": self.files_store,
            "assistant": self.assistants_store,
            "vector_store": self.vector_stores_store,
        }
        for kind, ident in preexisting:
            stores[kind][ident] = SimpleNamespace(id=ident)

        self.files = SimpleNamespace(
            create=self._files_create, list=self._files_list, delete=self._files_delete,
        )
        self.vector_stores = SimpleNamespace(
            list=self._vector_stores_list, delete=self._vector_stores_delete,
        )
        self.beta = SimpleNamespace(
            assistants=SimpleNamespace(
                create=self._assistants_create,
                list=self._assistants_list,
                delete=self._assistants_delete,
            ),
            threads=SimpleNamespace(
                create=self._threads_create,
                retrieve=self._threads_retrieve,
                delete=self._threads_delete,
                runs=SimpleNamespace(create=self._runs_create, retrieve=self._runs_retrieve),
                messages=SimpleNamespace(list=self._messages_list),
            ),
        )

    def _next_id(self, prefix):
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def _record(self, _call, **kwargs):
        self.calls.append((_call, kwargs))
        if self.fail_on == _call:
            raise RuntimeError(f"{_call} failed")

    async def _files_create(self, file, purpose):
        self._record("files.create", file=file, purpose=purpose)
        obj = SimpleNamespace(id=self._next_id("file"), filename=file[0])
        self.files_store[obj.id] = obj
        return obj

    def _files_list(self):
        self._record("files.list")
        return FakePage(self.files_store.values())

    async def _files_delete(self, file_id):
        self._record("files.delete", file_id=file_id)
        del self.files_store[file_id]

    def _vector_stores_list(self):
        self._record("vector_stores.list")
        return FakePage(self.vector_stores_store.values())

    async def _vector_stores_delete(self, vector_store_id):
        self._record("vector_stores.delete", vector_store_id=vector_store_id)
        del self.vector_stores_store[vector_store_id]

    async def _assistants_create(self, **params):
        self._record("assistants.create", **params)
        obj = SimpleNamespace(id=self._next_id("asst"), **params)
        self.assistants_store[obj.id] = obj
        return obj

    def _assistants_list(self):
        self._record("assistants.list")
        return FakePage(self.assistants_store.values())

    async def _assistants_delete(self, assistant_id):
        self._record("assistants.delete", assistant_id=assistant_id)
        del self.assistants_store[assistant_id]

    async def _threads_create(self, messages):
        self._record("threads.create", messages=messages)
        # file_search attachments get a vector store that outlives the thread
        searched = any(
            {"type": "file_search"} in attachment.get("tools", [])
            for message in messages
            for attachment in message.get("attachments", [])
        )
        tool_resources = None
        if searched:
            store = SimpleNamespace(id=self._next_id("vs"))
            self.vector_stores_store[store.id] = store
            tool_resources = SimpleNamespace(
                file_search=SimpleNamespace(vector_store_ids=[store.id]),
            )
        obj = SimpleNamespace(
            id=self._next_id("thread"), messages=messages, tool_resources=tool_resources,
        )
        self.threads_store[obj.id] = obj
        return obj

    async def _threads_retrieve(self, thread_id):
        self._record("threads.retrieve", thread_id=thread_id)
        return self.threads_store[thread_id]

    async def _threads_delete(self, thread_id):
        self._record("threads.delete", thread_id=thread_id)
        del self.threads_store[thread_id]

    async def _runs_create(self, thread_id, assistant_id):
        self._record("runs.create", thread_id=thread_id, assistant_id=assistant_id)
        return SimpleNamespace(id=self._next_id("run"), status="queued")

    async def _runs_retrieve(self, run_id, thread_id):
        self._record("runs.retrieve", run_id=run_id, thread_id=thread_id)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return SimpleNamespace(id=run_id, status=status)

    async def _messages_list(self, thread_id):
        self._record("messages.list", thread_id=thread_id)
        prompt = self.threads_store[thread_id].messages[0]["content"]
        messages = [text_message("user", prompt)]
        if self.reply is not None:
            messages.insert(0, text_message("assistant", self.reply))
        return FakePage(messages)

    def count(self, name):
        return sum(1 for call, _ in self.calls if call == name)

    def names(self):
        return [call for call, _ in self.calls]


@pytest.fixture(autouse=True)
def fast_polling(monkeypatch):
    monkeypatch.setattr(settings, "RUN_POLL_INTERVAL", 0)
    monkeypatch.setattr(settings, "RUN_POLL_ATTEMPTS", 20)
    monkeypatch.setattr(settings, "CLEANUP_SCOPE", "account")


@pytest.fixture
def fake_client(monkeypatch):
    fake = FakeOpenAI()
    monkeypatch.setattr(assistant, "client", fake)
    return fake
