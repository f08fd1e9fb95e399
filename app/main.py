# app/main.py
import logging

import openai
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from app.models import AskResponse, ErrorResponse
from app.config import settings
from app.llm.assistant import NoAnswerError
from app.pipeline import handle as pipeline_handle
from app.pipeline.validation import parse_form

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="File Assistant", version="1.0")

@app.get("/")
async def health_check():
    return "API is running"

@app.post("/", response_model=AskResponse, responses={400: {"model": ErrorResponse}})
@app.post("/api/v1/ask", response_model=AskResponse, responses={400: {"model": ErrorResponse}})
async def ask(request: Request):
    async with request.form() as form:
        parsed = parse_form(form)
        if parsed is None:
            logger.info("Rejected form submission with invalid file or prompt.")
            return JSONResponse(status_code=400, content=ErrorResponse().model_dump())

        file, prompt = parsed
        try:
            answer = await pipeline_handle(file, prompt)
        except NoAnswerError as e:
            raise HTTPException(status_code=502, detail=str(e))
        except openai.APIError as e:
            logger.error("❌ Error from assistant API: %s", e)
            raise HTTPException(status_code=502, detail="Assistant service request failed")

    return AskResponse(data=answer)
