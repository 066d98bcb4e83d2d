"""Constants for Sensay API operations."""


class SensayHeader:
    ORGANIZATION_SECRET = "X-ORGANIZATION-SECRET"
    USER_ID = "X-USER-ID"
    API_VERSION = "X-API-Version"


class KnowledgeBaseStatus:
    """Training entry statuses reported by Sensay."""
    BLANK = "BLANK"
    PROCESSING = "PROCESSING"
    READY = "READY"
    ERR_FILE_PROCESSING = "ERR_FILE_PROCESSING"
    ERR_TEXT_PROCESSING = "ERR_TEXT_PROCESSING"
    ERR_TEXT_TO_VECTOR = "ERR_TEXT_TO_VECTOR"

    FAILED = (ERR_FILE_PROCESSING, ERR_TEXT_PROCESSING, ERR_TEXT_TO_VECTOR)


class KnowledgeBaseType:
    TEXT = "text"


class ReplicaType:
    INDIVIDUAL = "individual"
    CHARACTER = "character"
    BRAND = "brand"


class ReplicaMemoryMode:
    RAG_SEARCH = "rag-search"


SHOPIFY_TAG_PREFIX = "shopify:"
CHAT_SOURCE = "web"
