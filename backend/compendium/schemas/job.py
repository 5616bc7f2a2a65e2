from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from compendium.schemas.artwork_index import BatchErrorOut


class ImportJobOut(BaseModel):
    id: str
    status: Literal["queued", "running", "completed", "failed"]
    total: int
    processed: int
    stored: int
    skipped: int
    progress: float
    errors: list[BatchErrorOut]
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime
