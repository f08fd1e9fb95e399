# app/models.py
from pydantic import BaseModel, Field

class AskResponse(BaseModel):
    data: str = Field(..., description="Answer text produced by the assistant")

class ErrorResponse(BaseModel):
    error: bool = True

class CleanupReport(BaseModel):
    assistants: int = 0
    vector_stores: int = 0
    files: int = 0
