from typing import Any

from pydantic import BaseModel

from powerswitch.schemas.common import UtcDatetime


class SystemLogEntry(BaseModel):
    id: int
    action: str
    description: str
    metadata: Any = None
    created_at: UtcDatetime | None = None
