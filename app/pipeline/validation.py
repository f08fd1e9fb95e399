from typing import Any, Optional, Tuple

from starlette.datastructures import UploadFile

from app.config import settings


def is_valid_file(value: Any) -> bool:
    """An uploaded file with a real name.

    Browsers submit an empty file input as a part with no filename; some
    clients serialise a missing file as the string ``"undefined"``.
    """
    if not isinstance(value, UploadFile):
        return False
    return bool(value.filename) and value.filename != "undefined"


def is_valid_prompt(value: Any, max_length: Optional[int] = None) -> bool:
    if max_length is None:
        max_length = settings.PROMPT_MAX_LENGTH
    return isinstance(value, str) and 0 <= len(value) < max_length


def parse_form(form) -> Optional[Tuple[UploadFile, str]]:
    """Pull ``file`` and ``prompt`` out of a submitted form.

    Returns ``None`` when either field is invalid. A missing prompt counts as
    an empty one.
    """
    file = form.get("file")
    prompt = form.get("prompt", "")

    if not is_valid_file(file) or not is_valid_prompt(prompt):
        return None
    return file, prompt
