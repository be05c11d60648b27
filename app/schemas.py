from typing import List, Optional

from pydantic import BaseModel, Field


class ExecuteSelectRequest(BaseModel):
    query: str
    max_rows: Optional[int] = Field(
        default=None,
        description="Maximum number of rows to return (default: 100, max: 1000)",
    )

    class Config:
        extra = "ignore"


class ExecuteSelectResponse(BaseModel):
    ok: bool = True
    content: str
    row_count: int = 0
    truncated: bool = False
    row_limit: int = 0
    columns: List[str] = Field(default_factory=list)
