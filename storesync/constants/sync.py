"""Constants for sync operations."""


class SyncStage:
    """Stages of the catalog to knowledge base pipeline, in order."""
    CONNECTING = "connecting"
    FETCHING = "fetching"
    PREPARING = "preparing"
    SYNCING = "syncing"
    DONE = "done"
    ERROR = "error"


class ProgressEventType:
    """Progress event types sent over the stream."""
    PROGRESS = "progress"
    SUCCESS = "success"
    ERROR = "error"


class SyncProgress:
    """Progress checkpoints (0-100) reported at each step."""
    CONNECTING = 5
    VERIFYING = 15
    FETCHING = 25
    PRODUCTS_FOUND = 35
    REPLICA_SETUP = 40
    KB_LOOKUP = 45
    FORMATTING = 50
    KB_CREATE = 60
    KB_UPLOAD = 70
    PROCESSING_START = 75
    PROCESSING_MAX = 95
    COMPLETE = 100


class ReplicaListType:
    """Values accepted by the replicas listing ``type`` query parameter."""
    ALL = "all"
    SHOPIFY = "shopify"
    KNOWLEDGE = "knowledge"
