from __future__ import annotations

import logging

from ldap3.core.results import (
    RESULT_ENTRY_ALREADY_EXISTS,
    RESULT_INSUFFICIENT_ACCESS_RIGHTS,
    RESULT_INVALID_CREDENTIALS,
    RESULT_INVALID_DN_SYNTAX,
    RESULT_NO_SUCH_OBJECT,
)

from ..errors import (
    DirectoryError,
    EntryAlreadyExistsError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    UnauthorizedError,
)

log = logging.getLogger(__name__)

MSG_INVALID_CREDENTIALS = "Invalid Credentials"
MSG_INSUFFICIENT_ACCESS_RIGHTS = "Insufficient Access Rights"
MSG_ENTRY_ALREADY_EXISTS = "Entry Already Exists"
MSG_NO_SUCH_OBJECT = "No Such Object"


def _error_text(err: Exception) -> str:
    desc = getattr(err, "description", None) or ""
    return f"{desc} {err}".lower()


def _matches(err: Exception, codes: tuple[int, ...], *names: str) -> bool:
    if getattr(err, "result", None) in codes:
        return True
    text = _error_text(err)
    return any(name.lower() in text for name in names)


def translate_ldap_error(err: Exception) -> DirectoryError:
    """Map an ldap3 failure onto the application error taxonomy.

    The check order matters: the first matching condition wins. Anything
    unrecognised is logged and surfaced verbatim as an internal error.
    """
    if _matches(err, (RESULT_INVALID_CREDENTIALS, RESULT_INVALID_DN_SYNTAX), "invalidCredentials", "invalidDNSyntax"):
        return UnauthorizedError(MSG_INVALID_CREDENTIALS)

    if _matches(err, (RESULT_INSUFFICIENT_ACCESS_RIGHTS,), "insufficientAccessRights"):
        return ForbiddenError(MSG_INSUFFICIENT_ACCESS_RIGHTS)

    if _matches(err, (RESULT_ENTRY_ALREADY_EXISTS,), "entryAlreadyExists"):
        return EntryAlreadyExistsError(MSG_ENTRY_ALREADY_EXISTS)

    if _matches(err, (RESULT_NO_SUCH_OBJECT,), "noSuchObject"):
        return NotFoundError(MSG_NO_SUCH_OBJECT)

    log.error("Unexpected LDAP error: %s", err)
    return InternalServerError(str(err))
