from __future__ import annotations

import re
from typing import Optional

from ..directory.models import User
from ..errors import InternalServerError
from ..schema import PERSONAL_USER_PATTERN

USER_TYPE_PERSONAL = "personal"
USER_TYPE_NPA = "npa"
USER_TYPE_BUILDER = "builder"

VALID_USER_TYPES = [USER_TYPE_PERSONAL, USER_TYPE_NPA, USER_TYPE_BUILDER]

BUILDER_ACCOUNT_SUFFIX = "_BUILDER"


class UserTypeClassifier:
    """Sort accounts into personal, builder and non-personal (npa) ones.

    Personal accounts are recognised by their uid shape (``pattern``,
    searched unanchored, so anchors must be part of the pattern). Builder
    accounts carry ``builder_suffix`` in their uid. Everything else is npa.

    The pattern is compiled on first use, so a malformed one only fails the
    calls that need it.
    """

    def __init__(self, pattern: str = PERSONAL_USER_PATTERN, builder_suffix: str = BUILDER_ACCOUNT_SUFFIX) -> None:
        self.pattern = pattern
        self.builder_suffix = builder_suffix
        self._compiled: Optional[re.Pattern[str]] = None

    @property
    def builder_filter(self) -> str:
        return "*" + self.builder_suffix

    def compile(self) -> re.Pattern[str]:
        if self._compiled is None:
            try:
                self._compiled = re.compile(self.pattern)
            except re.error as e:
                raise InternalServerError(str(e)) from e
        return self._compiled

    def is_personal(self, uid: str) -> bool:
        return self.compile().search(uid or "") is not None

    def is_builder(self, uid: str) -> bool:
        return self.builder_suffix in (uid or "")

    def classify(self, uid: str) -> str:
        if self.is_personal(uid):
            return USER_TYPE_PERSONAL
        if self.is_builder(uid):
            return USER_TYPE_BUILDER
        return USER_TYPE_NPA

    def personal(self, users: list[User]) -> list[User]:
        return [u for u in users if self.is_personal(u.uid)]

    def npa(self, users: list[User]) -> list[User]:
        return [u for u in users if not self.is_personal(u.uid) and not self.is_builder(u.uid)]
