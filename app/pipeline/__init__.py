"""
End-to-end orchestration for the ask endpoint.

Steps
1. Upload the document                          → assistant.create_file
2. Create an assistant for the document         → assistant.create_assistant
3. Seed a thread with the prompt + document     → assistant.create_thread
4. Start a run                                  → assistant.create_run
5. Poll the run, then list the messages         → assistant.await_messages
6. Pick the answer text                         → assistant.extract_answer
7. Delete the thread, assistants, vector stores
   and files                                    → assistant.delete_thread / clean_*
"""

import logging

from app.config import settings
from app.llm import assistant as api
from app.models import CleanupReport

logger = logging.getLogger(__name__)


async def _attempt(step: str, call, default=0):
    try:
        return await call
    except Exception:
        logger.exception("❌ Cleanup step '%s' failed.", step)
        return default


async def cleanup(thread_id=None, assistant_ids=(), file_ids=()) -> CleanupReport:
    """Remove remote resources left behind by a request.

    With ``CLEANUP_SCOPE == "account"`` every assistant, vector store and file
    stored under the API key is deleted, including those of concurrent
    requests. Each step runs even when an earlier one failed; failures are
    logged, not raised.
    """
    store_ids = []
    if thread_id is not None:
        store_ids = await _attempt("list thread vector stores", api.fetch_thread_vector_stores(thread_id), [])
        await _attempt("delete thread", api.delete_thread(thread_id))

    if settings.CLEANUP_SCOPE == "request":
        assistants = await _attempt("assistants", api.clean_assistants(only=assistant_ids))
        stores = await _attempt("vector stores", api.clean_vector_stores(only=store_ids))
        files = await _attempt("files", api.clean_files(only=file_ids))
    else:
        assistants = await _attempt("assistants", api.clean_assistants())
        stores = await _attempt("vector stores", api.clean_vector_stores())
        files = await _attempt("files", api.clean_files())
    return CleanupReport(assistants=assistants, vector_stores=stores, files=files)


async def handle(file, prompt: str) -> str:
    """
    Main entry called by FastAPI - expects an already validated UploadFile
    and prompt string, returns the assistant's answer text.
    """
    content = await file.read()

    stored_file = assistant = thread = None
    try:
        stored_file = await api.create_file(file.filename, content, file.content_type)
        assistant = await api.create_assistant(stored_file)
        thread = await api.create_thread(stored_file, prompt)
        run = await api.create_run(assistant.id, thread.id)
        messages = await api.await_messages(thread.id, run.id)
        return api.extract_answer(messages)
    finally:
        report = await cleanup(
            thread_id=thread.id if thread is not None else None,
            assistant_ids=[assistant.id] if assistant is not None else [],
            file_ids=[stored_file.id] if stored_file is not None else [],
        )
        logger.info(
            "🧹 Cleanup removed %d assistants, %d vector stores and %d files.",
            report.assistants, report.vector_stores, report.files,
        )
