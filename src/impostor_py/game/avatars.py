"""Static avatar catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from impostor_py.exceptions import UnknownAvatarError

AVATAR_COUNT = 18


@dataclass(frozen=True)
class Avatar:
    """A selectable player avatar."""

    id: int
    name: str
    image: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "image": self.image}


class AvatarCatalog:
    """Read-only lookup of avatars by id."""

    def __init__(self, avatars: list[Avatar] | None = None) -> None:
        if avatars is None:
            avatars = [
                Avatar(id=n, name=f"Avatar {n}", image=f"avatars/avatar{n}.png") for n in range(1, AVATAR_COUNT + 1)
            ]
        self.avatars: dict[int, Avatar] = {avatar.id: avatar for avatar in avatars}

    def get(self, avatar_id: int) -> Avatar | None:
        return self.avatars.get(avatar_id)

    def validate(self, avatar_id: int) -> int:
        """Check that an avatar id exists.

        Raises:
            UnknownAvatarError: If the id is not in the catalog.
        """
        if avatar_id not in self.avatars:
            raise UnknownAvatarError(avatar_id)
        return avatar_id

    def list_avatars(self) -> list[Avatar]:
        return list(self.avatars.values())
