"""
Thin async wrappers around the OpenAI Assistants API.

Every helper maps to exactly one remote call (or one listing + deletes for the
cleanup helpers) and logs the ids it touches so a request can be followed in
the server log.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Collection, List, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI
from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_fixed

from app.config import settings

load_dotenv()

logger = logging.getLogger(__name__)

client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)

# Statuses after which a run will not change any more without our input.
TERMINAL_RUN_STATUSES = {"completed", "failed", "cancelled", "expired", "incomplete"}


class AssistantError(Exception):
    """Base error for failures in the assistant round-trip."""


class NoAnswerError(AssistantError):
    """The thread holds no text produced by the assistant."""


async def create_file(filename: str, content: bytes, content_type: Optional[str] = None):
    logger.info("Creating file.")
    stored_file = await client.files.create(
        file=(filename, content, content_type),
        purpose="assistants",
    )
    logger.info("Created file %s.", stored_file.id)
    return stored_file


async def create_assistant(file):
    logger.info("Creating assistant using file %s.", file.id)
    params = dict(
        name=settings.ASSISTANT_NAME,
        model=settings.ASSISTANT_MODEL,
        tools=[{"type": "file_search"}],
        metadata={"file_id": file.id},
    )
    if settings.ASSISTANT_INSTRUCTIONS:
        params["instructions"] = settings.ASSISTANT_INSTRUCTIONS
    assistant = await client.beta.assistants.create(**params)
    logger.info("Created assistant %s.", assistant.id)
    return assistant


async def create_thread(file, prompt: str):
    logger.info("Creating thread using file %s.", file.id)
    thread = await client.beta.threads.create(
        messages=[
            {
                "role": "user",
                "content": prompt,
                "attachments": [
                    {"file_id": file.id, "tools": [{"type": "file_search"}]}
                ],
            }
        ]
    )
    logger.info("Created thread %s.", thread.id)
    return thread


async def create_run(assistant_id: str, thread_id: str):
    logger.info("Creating run for assistant %s, thread %s.", assistant_id, thread_id)
    run = await client.beta.threads.runs.create(
        thread_id=thread_id,
        assistant_id=assistant_id,
    )
    logger.info("Created run %s.", run.id)
    return run


async def fetch_run(thread_id: str, run_id: str):
    return await client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)


async def fetch_messages(thread_id: str):
    logger.info("Fetching messages for thread %s.", thread_id)
    messages = await client.beta.threads.messages.list(thread_id)
    logger.info("Fetched %d messages.", len(messages.data))
    return messages


async def await_messages(thread_id: str, run_id: str) -> List:
    """Poll the run until it settles, then return the thread messages.

    The run is fetched at most ``RUN_POLL_ATTEMPTS`` times, ``RUN_POLL_INTERVAL``
    seconds apart. Running out of attempts is not an error: the messages are
    fetched anyway and whatever the assistant produced so far is returned.
    """
    logger.info("Awaiting messages for thread %s, run %s.", thread_id, run_id)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(settings.RUN_POLL_ATTEMPTS),
        wait=wait_fixed(settings.RUN_POLL_INTERVAL),
        retry=retry_if_result(lambda r: r.status not in TERMINAL_RUN_STATUSES),
        retry_error_callback=lambda state: state.outcome.result(),
        sleep=asyncio.sleep,
    )
    run = await retrying(fetch_run, thread_id, run_id)

    if run.status not in TERMINAL_RUN_STATUSES:
        logger.warning("Timeout while awaiting messages for thread %s, run %s.", thread_id, run_id)
    elif run.status != "completed":
        logger.warning("Run %s ended with status %s.", run_id, run.status)

    messages = await fetch_messages(thread_id)
    return messages.data


def extract_answer(messages: List) -> str:
    """Return the first text block of the newest assistant message.

    Messages are listed newest first, so the first assistant message is the
    reply to the prompt.
    """
    for message in messages:
        if message.role != "assistant":
            continue
        for block in message.content:
            if block.type == "text":
                return block.text.value
    raise NoAnswerError("assistant produced no text answer")


# Threads cannot be listed, so only the thread we created can be removed.
async def delete_thread(thread_id: str) -> None:
    logger.info("Deleting thread %s.", thread_id)
    await client.beta.threads.delete(thread_id)
    logger.info("Deleted thread %s.", thread_id)


async def clean_assistants(only: Optional[Collection[str]] = None) -> int:
    """Delete assistants; every one on the account unless *only* is given."""
    logger.info("Cleaning assistants.")
    if only is None:
        ids = [assistant.id async for assistant in client.beta.assistants.list()]
    else:
        ids = list(only)

    for assistant_id in ids:
        await client.beta.assistants.delete(assistant_id)
    logger.info("Deleted %d assistants.", len(ids))
    return len(ids)


async def clean_files(only: Optional[Collection[str]] = None) -> int:
    """Delete stored files; every one on the account unless *only* is given."""
    logger.info("Cleaning files.")
    if only is None:
        ids = [file.id async for file in client.files.list()]
    else:
        ids = list(only)

    for file_id in ids:
        await client.files.delete(file_id)
    logger.info("Deleted %d files.", len(ids))
    return len(ids)


async def fetch_thread_vector_stores(thread_id: str) -> List[str]:
    """Ids of the vector stores the API created for the thread's attachments.

    They outlive the thread, so they have to be collected before it is deleted.
    """
    thread = await client.beta.threads.retrieve(thread_id)
    resources = thread.tool_resources
    if resources is None or resources.file_search is None:
        return []
    return list(resources.file_search.vector_store_ids or [])


async def clean_vector_stores(only: Optional[Collection[str]] = None) -> int:
    """Delete vector stores; every one on the account unless *only* is given."""
    logger.info("Cleaning vector stores.")
    if only is None:
        ids = [store.id async for store in client.vector_stores.list()]
    else:
        ids = list(only)

    for store_id in ids:
        await client.vector_stores.delete(store_id)
    logger.info("Deleted %d vector stores.", len(ids))
    return len(ids)
