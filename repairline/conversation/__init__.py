from repairline.conversation.completion import (
    completion_percentage,
    is_complete,
    missing_fields,
    missing_required,
)
from repairline.conversation.flow_engine import FlowBranch, FlowDecision, FlowEngine
from repairline.conversation.slot_extractor import extract
from repairline.conversation.state_manager import (
    ConversationStateManager,
    Created,
    Degraded,
    Found,
    StateLookup,
)

__all__ = [
    "extract",
    "completion_percentage",
    "missing_fields",
    "missing_required",
    "is_complete",
    "FlowEngine",
    "FlowDecision",
    "FlowBranch",
    "ConversationStateManager",
    "StateLookup",
    "Found",
    "Created",
    "Degraded",
]
