from datetime import datetime, timezone
from typing import Optional

from pydantic import ConfigDict, Field

from storesync.constants.sync import ProgressEventType
from storesync.schemas.base import CamelModel


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProgressEvent(CamelModel):
    """One message of the sync progress stream.

    Stage specific values (``productCount``, ``knowledgeBaseId``, ...) are
    carried as extra fields and serialized next to the common ones.
    """
    model_config = ConfigDict(extra="allow")

    type: str
    stage: str
    message: str
    progress: int = Field(0, ge=0, le=100)
    timestamp: str = Field(default_factory=_utc_now)
    product_count: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.type != ProgressEventType.PROGRESS
