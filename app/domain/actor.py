# app/domain/actor.py
from dataclasses import dataclass

from app.domain.enums import Role


@dataclass(frozen=True)
class Actor:
    """Uwierzytelniony uzytkownik przekazany przez zewnetrzna warstwe auth."""

    id: int
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
