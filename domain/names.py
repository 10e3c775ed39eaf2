from __future__ import annotations

from typing import Any, Mapping, Optional

from domain.models import Participant, ParticipantId


def email_local(email: Optional[str]) -> str:
    if not email:
        return ""
    at = email.find("@")
    return email[:at] if at > 0 else email


def display_name(row: Mapping[str, Any], fallback_id: ParticipantId | None = None) -> str:
    """
    Resolve the name shown for a registration row.

    Precedence: chosen display name, "first last", e-mail local part, raw id.
    """
    chosen = str(row.get("display_name") or "").strip()
    if chosen:
        return chosen

    first = str(row.get("first_name") or "").strip()
    last = str(row.get("last_name") or "").strip()
    composed = f"{first} {last}".strip()
    if composed:
        return composed

    local = email_local(row.get("email"))
    if local:
        return local

    raw = row.get("participant_id", fallback_id)
    return str(raw) if raw is not None else ""


def participant_from_row(row: Mapping[str, Any]) -> Participant:
    return Participant(participant_id=row["participant_id"], name=display_name(row))
