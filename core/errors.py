# core/errors.py
from __future__ import annotations


class GameError(Exception):
    """
    Очікувана помилка гри: віддається клієнту як {"detail": code}.
    Стан бою при цьому не змінюється.
    """

    status_code: int = 400
    code: str = "GAME_ERROR"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class Unauthorized(GameError):
    status_code = 401
    code = "UNAUTHORIZED"


class NoActiveBattle(GameError):
    status_code = 404
    code = "NO_ACTIVE_BATTLE"


class YouFainted(GameError):
    status_code = 409
    code = "YOU_FAINTED"


class MustSwitchFirst(GameError):
    status_code = 409
    code = "MUST_SWITCH_FIRST"


class CaptureOrFinishPending(GameError):
    status_code = 409
    code = "CAPTURE_OR_FINISH_PENDING"


class NotAllowedToCapture(GameError):
    status_code = 409
    code = "NOT_ALLOWED_TO_CAPTURE"


class TurnInProgress(GameError):
    status_code = 409
    code = "TURN_IN_PROGRESS"


class BattleInProgress(GameError):
    status_code = 409
    code = "BATTLE_IN_PROGRESS"


class NoPP(GameError):
    code = "NO_PP"


class BadMoveReference(GameError):
    code = "BAD_MOVE_REFERENCE"


class BadPartyIndex(GameError):
    code = "BAD_PARTY_INDEX"


class InvalidStackError(GameError):
    code = "INVALID_STACK"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "must include exactly one base effect")


class MonsterNotFound(GameError):
    status_code = 404
    code = "MONSTER_NOT_FOUND"


class PartyNotEmpty(GameError):
    status_code = 409
    code = "PARTY_NOT_EMPTY"


class UnknownSpecies(GameError):
    code = "UNKNOWN_SPECIES"
