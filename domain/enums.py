from __future__ import annotations

from enum import Enum


class Discipline(str, Enum):
    FOOTBALL = "football"
    CHESS = "chess"


class TournamentFormat(str, Enum):
    LEAGUE = "league"
    KNOCKOUT = "knockout"
    SWISS = "swiss_system"


class MatchStatus(str, Enum):
    PLANNED = "planned"
    FINISHED = "finished"


class Slot(str, Enum):
    HOME = "home"
    AWAY = "away"


class Role(str, Enum):
    PARTICIPANT = "participant"
    ORGANIZER = "organizer"
    ADMINISTRATOR = "administrator"

    @property
    def can_manage(self) -> bool:
        return self in (Role.ORGANIZER, Role.ADMINISTRATOR)
