from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.  The
    learner id for every enrollment, media and progress operation is
    ``user_id`` (the token subject); it is never taken from a path or body
    parameter, so one learner cannot read or write another's records.
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def is_platform_admin(self) -> bool:
        return "admin" in self.roles
