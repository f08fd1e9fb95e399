"""Manual smoke run against the real Assistants API.

    OPENAI_API_KEY=... python -m scripts.testing path/to/document.pdf "Summarize this document"

Uses CLEANUP_SCOPE=request unless overridden so a shared key is not wiped.
"""
import asyncio
import io
import logging
import os
import sys
import traceback
from pathlib import Path

os.environ.setdefault("CLEANUP_SCOPE", "request")

from starlette.datastructures import UploadFile

from app.pipeline import handle
from app.pipeline.validation import parse_form

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


async def run(path: Path, prompt: str):
    try:
        logger.info(f"📄 Uploading {path.name}...")
        upload = UploadFile(file=io.BytesIO(path.read_bytes()), filename=path.name)

        parsed = parse_form({"file": upload, "prompt": prompt})
        if parsed is None:
            logger.error("❌ Invalid file or prompt (prompt must be shorter than 200 chars)")
            return None

        answer = await handle(*parsed)

        logger.info("🎯 Run completed successfully!")
        print("\n🎯 Answer:")
        print(answer)
        return answer

    except Exception as e:
        logger.error(f"💥 Run failed: {e}")
        logger.error(f"💥 Traceback: {traceback.format_exc()}")
        raise


if __name__ == "__main__":
    if len(sys.argv) < 2:
        sys.exit(__doc__)
    doc = Path(sys.argv[1])
    question = sys.argv[2] if len(sys.argv) > 2 else "Summarize this document."
    asyncio.run(run(doc, question))
