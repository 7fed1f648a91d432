# =============================================================================
# File: sentinel/chat/exceptions.py
# Description: Chat domain exceptions
# =============================================================================

from sentinel.common.exceptions.exceptions import (
    ForbiddenError,
    ResourceNotFoundError,
    ValidationError,
)


class RoomNotFoundError(ResourceNotFoundError):
    """Room not found"""
    def __init__(self, room_id: str):
        super().__init__(f"Room not found: {room_id}")
        self.room_id = room_id


class ProjectNotFoundError(ResourceNotFoundError):
    """Project not found in the project directory"""
    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class UserNotFoundError(ResourceNotFoundError):
    """User not found in the user directory"""
    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class NotRoomMemberError(ForbiddenError):
    """User is not a member of the room"""
    def __init__(self, room_id: str, user_id: str):
        super().__init__(f"User {user_id} is not a member of room {room_id}")
        self.room_id = room_id
        self.user_id = user_id


class NotProjectMemberError(ForbiddenError):
    """User is neither owner nor member of the project"""
    def __init__(self, project_id: str, user_id: str):
        super().__init__(f"User {user_id} has no access to project {project_id}")
        self.project_id = project_id
        self.user_id = user_id


class InvalidMessageError(ValidationError):
    """Message type and content do not agree"""
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidRoomError(ValidationError):
    """Room attributes are invalid"""
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
