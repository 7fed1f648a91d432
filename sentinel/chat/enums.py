# =============================================================================
# File: sentinel/chat/enums.py
# Description: Chat domain enumerations
# =============================================================================

from enum import Enum


class MessageType(str, Enum):
    """Types of messages"""
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"


class MembershipChange(str, Enum):
    """Direction of a project membership change"""
    ADDED = "added"
    REMOVED = "removed"
