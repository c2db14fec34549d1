# User schemas
from .user import Identity

# Inbound frame schemas
from .message import (
    RoomName,
    JoinFrame,
    LeaveFrame,
    ChatFrame,
    MessageCreateFrame,
    TypingFrame,
    EventFrame,
    EventPayload,
    PingFrame,
    InboundFrame,
    parse_frame
)

# Emit schemas
from .emit import EmitRequest, EmitResponse
