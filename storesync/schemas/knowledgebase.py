from typing import List, Optional

from pydantic import Field

from storesync.schemas.base import CamelModel


# ------------------ KNOWLEDGE BASE ------------------
class KnowledgeBasePayload(CamelModel):
    """Content pushed to a Sensay knowledge base entry."""
    raw_text: str
    generated_facts: List[str] = Field(default_factory=list)


class KnowledgeBaseInfo(CamelModel):
    id: int
    replica_uuid: str = ""
    type: str = "text"
    filename: Optional[str] = None
    status: str = "BLANK"
    raw_text_preview: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    product_count: Optional[int] = None


# ------------------ REPLICAS ------------------
class ReplicaLLM(CamelModel):
    model: str = "unknown"
    memory_mode: str = "unknown"
    system_message: str = ""


class ReplicaInfo(CamelModel):
    uuid: str
    name: str = ""
    short_description: str = ""
    greeting: str = ""
    type: str = "character"
    owner_id: str = Field("", alias="ownerID")
    private: bool = False
    slug: str = ""
    tags: List[str] = Field(default_factory=list)
    profile_image: Optional[str] = None
    suggested_questions: Optional[List[str]] = None
    created_at: str = ""
    llm: ReplicaLLM = Field(default_factory=ReplicaLLM)


class UserReplicaResult(CamelModel):
    success: bool
    user_id: Optional[str] = None
    replica_uuid: Optional[str] = None
    error: Optional[str] = None


# ------------------ SYNC ------------------
class SyncResult(CamelModel):
    """Terminal outcome of one knowledge base sync."""
    success: bool
    product_count: int = 0
    knowledge_base_id: Optional[int] = None
    replica_uuid: Optional[str] = None
    user_id: Optional[str] = None
    status: Optional[str] = None
    is_update: bool = False
    error: Optional[str] = None


# ------------------ CHAT ------------------
class ChatRequest(CamelModel):
    replica_uuid: str
    user_id: str
    content: str = Field(..., min_length=1)
    skip_chat_history: bool = False


class ChatResponse(CamelModel):
    success: bool
    content: str = ""
