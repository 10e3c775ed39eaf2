from __future__ import annotations


class FormatError(Exception):
    pass


class InsufficientParticipants(FormatError):
    pass


class InvalidParticipants(FormatError, ValueError):
    pass


class ScheduleAlreadyExists(FormatError):
    pass


class NoValidPairing(FormatError):
    pass


class BracketStateError(FormatError):
    pass
