"""Session identity values."""

from dataclasses import dataclass, field
from enum import Enum


class IdentityKind(str, Enum):
    ANONYMOUS = "anonymous"
    GUEST = "guest"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Identity:
    """Who the current session belongs to.

    Two identities are equal when kind and user id match; the e-mail is
    informational only.
    """

    kind: IdentityKind
    user_id: str | None = None
    email: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.kind == IdentityKind.AUTHENTICATED and not self.user_id:
            raise ValueError("Authenticated identity requires a user_id")
        if self.kind != IdentityKind.AUTHENTICATED and self.user_id:
            raise ValueError("Only authenticated identities carry a user_id")

    @classmethod
    def anonymous(cls) -> "Identity":
        return cls(IdentityKind.ANONYMOUS)

    @classmethod
    def guest(cls) -> "Identity":
        return cls(IdentityKind.GUEST)

    @classmethod
    def authenticated(cls, user_id: str, email: str | None = None) -> "Identity":
        return cls(IdentityKind.AUTHENTICATED, user_id=user_id, email=email)

    @property
    def is_authenticated(self) -> bool:
        return self.kind == IdentityKind.AUTHENTICATED

    @property
    def is_guest(self) -> bool:
        return self.kind == IdentityKind.GUEST

    @property
    def is_anonymous(self) -> bool:
        return self.kind == IdentityKind.ANONYMOUS
