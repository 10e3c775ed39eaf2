from __future__ import annotations

from typing import Any, Mapping

from repositories.base_repo import BaseRepo


class TournamentRepo(BaseRepo):
    async def get_tournament(self, *, tournament_id: int) -> Mapping[str, Any] | None:
        return await self.fetch_one(
            """
            SELECT tournament_id, name, discipline, format, capacity, status
            FROM tournament
            WHERE tournament_id=%s;
            """,
            (tournament_id,),
        )

    async def list_accepted_participants(self, *, tournament_id: int) -> list[Mapping[str, Any]]:
        """
        Accepted registrations in acceptance order, with every column the
        display name is resolved from.
        """
        return await self.fetch_all(
            """
            SELECT
              COALESCE(r.team_id, r.user_id) AS participant_id,
              COALESCE(t.name, u.display_name) AS display_name,
              u.first_name,
              u.last_name,
              u.email
            FROM tournament_registration r
            LEFT JOIN team t ON t.team_id = r.team_id
            LEFT JOIN app_user u ON u.user_id = r.user_id
            WHERE r.tournament_id=%s AND r.status='accepted'
            ORDER BY r.accepted_at IS NULL, r.accepted_at, r.registration_id;
            """,
            (tournament_id,),
        )
