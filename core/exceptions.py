from typing import List, Optional

from fastapi import HTTPException, status


class PoolException(HTTPException):
    def __init__(self, detail: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=detail)


class GameNotFound(PoolException):
    def __init__(self):
        super().__init__("Game not found", status.HTTP_404_NOT_FOUND)


class ProfileNotFound(PoolException):
    def __init__(self):
        super().__init__("User not found", status.HTTP_404_NOT_FOUND)


class BoxesUnavailable(PoolException):
    """Some requested boxes were taken by someone else before the update landed."""

    def __init__(self, box_ids: Optional[List[int]] = None, requested: int = 0, claimed: int = 0):
        self.box_ids = sorted(box_ids or [])
        self.requested = requested
        self.claimed = claimed
        if self.box_ids:
            detail = f"Some boxes are no longer available: {self.box_ids}"
        else:
            detail = f"Only {claimed} of {requested} boxes could be claimed"
        super().__init__(detail, status.HTTP_409_CONFLICT)


class NotEnoughBoxes(PoolException):
    def __init__(self, requested: int, available: int):
        super().__init__(
            f"Requested {requested} boxes but only {available} are available",
            status.HTTP_409_CONFLICT,
        )


class GameClosed(PoolException):
    def __init__(self, detail: str = "Box sales are closed for this game"):
        super().__init__(detail, status.HTTP_409_CONFLICT)


class NumbersAlreadyAssigned(PoolException):
    def __init__(self):
        super().__init__(
            "Numbers are already assigned. Reset them before assigning again",
            status.HTTP_409_CONFLICT,
        )


class NumbersNotAssigned(PoolException):
    def __init__(self, detail: str = "Numbers not yet assigned"):
        super().__init__(detail, status.HTTP_409_CONFLICT)


class InvalidQuarter(PoolException):
    def __init__(self, quarter: int):
        super().__init__(
            f"Quarter must be between 1 and 4, got {quarter}",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
        )


class RoleRequired(PoolException):
    def __init__(self, role: str):
        super().__init__(f"Access denied. Required role: {role}", status.HTTP_403_FORBIDDEN)
