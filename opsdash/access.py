from __future__ import annotations

import hmac
from dataclasses import dataclass
from enum import Enum


class AccessState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclass
class AccessContext:
    """Per-session gate in front of the dashboard views.

    One shared password; an empty password leaves the dashboard open. The
    data pipeline never consults this object, only the presentation layer does.
    """

    password: str = ""
    state: AccessState = AccessState.UNAUTHENTICATED

    @property
    def required(self) -> bool:
        return bool(self.password)

    @property
    def is_authenticated(self) -> bool:
        return not self.required or self.state is AccessState.AUTHENTICATED

    def check(self, attempt: str) -> bool:
        return hmac.compare_digest((attempt or "").encode("utf-8"), self.password.encode("utf-8"))

    def authenticate(self, attempt: str) -> bool:
        if not self.required or self.check(attempt):
            self.state = AccessState.AUTHENTICATED
            return True
        return False

    def end_session(self) -> None:
        self.state = AccessState.UNAUTHENTICATED
