"""Job trigger schemas."""

from pydantic import BaseModel, Field


class JobTriggerRequest(BaseModel):
    verification_code: str = Field(min_length=1, max_length=32)


class IndexResultRead(BaseModel):
    indexed: int
    failed: int


class ProcessResultRead(BaseModel):
    processed: int
    skipped: int
