from repairline.store.catalogs import (
    AudioCatalog,
    FAQCatalog,
    InMemoryAudioCatalog,
    InMemoryFAQCatalog,
    InMemoryTenantDirectory,
    RestAudioCatalog,
    RestFAQCatalog,
    RestTenantDirectory,
    TenantDirectory,
)
from repairline.store.conversation_store import (
    ConversationStore,
    InMemoryConversationStore,
    RestConversationStore,
)
from repairline.store.interactions import (
    InMemoryInteractionLog,
    InteractionLog,
    RestInteractionLog,
)
from repairline.store.rest_client import RestClient

__all__ = [
    "RestClient",
    "ConversationStore", "RestConversationStore", "InMemoryConversationStore",
    "FAQCatalog", "RestFAQCatalog", "InMemoryFAQCatalog",
    "AudioCatalog", "RestAudioCatalog", "InMemoryAudioCatalog",
    "TenantDirectory", "RestTenantDirectory", "InMemoryTenantDirectory",
    "InteractionLog", "RestInteractionLog", "InMemoryInteractionLog",
]
