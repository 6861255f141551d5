from __future__ import annotations


class GameError(Exception):
    pass


class OperationalError(GameError):
    """A requested operation cannot run in the room's current state.

    Reported to the requesting connection only; room state is left unchanged.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InfrastructureError(GameError):
    pass


class ReferenceDataError(InfrastructureError):
    pass


class UnknownModeError(InfrastructureError):
    def __init__(self, mode: str) -> None:
        super().__init__(f"unknown game mode: {mode!r}")
        self.mode = mode
