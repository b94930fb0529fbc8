from __future__ import annotations

from typing import Optional, Protocol

from ..directory.connection import ConnectionManager
from ..directory.models import VALID_STATUSES, User
from ..directory.requests import BASE, SUBTREE, AddRequest, DeleteRequest, Entry, PasswordModifyRequest, SearchRequest
from ..directory.utils import escape_ldap_filter_value
from ..errors import BadRequestError, ConflictError, EntryAlreadyExistsError, MissingParametersError, NotFoundError
from .user_types import USER_TYPE_BUILDER, USER_TYPE_NPA, USER_TYPE_PERSONAL, VALID_USER_TYPES, UserTypeClassifier

USER_ID_ATTR = "uid"
ALTERNATE_USER_ID_ATTR = "altUid"
COMMON_NAME_ATTR = "cn"
FAMILY_NAME_ATTR = "sn"
DISPLAY_NAME_ATTR = "displayName"
EMPLOYEE_NUMBER_ATTR = "employeeNumber"
MAIL_ATTR = "mail"
USER_PASSWORD_ATTR = "userPassword"
STATUS_ATTR = "status"
OBJECT_CLASS_ATTR = "objectClass"

USER_SEARCH_FILTER = "(&(objectClass=inetOrgPerson))"
WILDCARD_USER_SEARCH_FILTER = "(&({key}={value})(objectClass=inetOrgPerson))"

DEFAULT_USER_OBJECT_CLASSES = [
    "person",
    "organizationalPerson",
    "inetOrgPerson",
    "top",
    "userExtras",
    "alternativeLogonUid",
]

USER_ATTRIBUTES = [
    USER_ID_ATTR,
    ALTERNATE_USER_ID_ATTR,
    COMMON_NAME_ATTR,
    FAMILY_NAME_ATTR,
    DISPLAY_NAME_ATTR,
    EMPLOYEE_NUMBER_ATTR,
    MAIL_ATTR,
    STATUS_ATTR,
]


class UsersManager(Protocol):
    def get_all(self) -> list[User]: ...

    def get(self, uid: str) -> User: ...

    def filter(self, key: str, value: str) -> list[User]: ...

    def filter_by_status(self, status: str) -> list[User]: ...

    def filter_by_type(self, user_type: str) -> list[User]: ...

    def create(self, user: User) -> None: ...

    def delete(self, uid: str) -> None: ...

    def authenticate(self) -> None: ...

    def set_new_password(self, uid: str, new_password: str = "") -> str: ...


def _not_found(uid: str) -> NotFoundError:
    return NotFoundError(f"User with uid = '{uid}' was not found")


class LDAPUsersManager:
    """``inetOrgPerson`` accounts stored below the user base DN."""

    def __init__(self, conn: ConnectionManager, classifier: Optional[UserTypeClassifier] = None) -> None:
        self.conn = conn
        self.classifier = classifier or UserTypeClassifier(conn.cfg.personal_user_pattern)

    def get_all(self) -> list[User]:
        return self.parse_search_result(self.conn.search(self.users_search_request(USER_SEARCH_FILTER)))

    def get(self, uid: str) -> User:
        """Return a single user.

        Raises
        ------
        MissingParametersError
            ``uid`` is empty.
        NotFoundError
            There is no entry for ``uid``.
        """
        self.validate_uid(uid)
        try:
            entries = self.conn.search(self.user_search_request(self.get_dn(uid)))
        except NotFoundError as e:
            raise _not_found(uid) from e
        users = self.parse_search_result(entries)
        if not users:
            raise _not_found(uid)
        return users[0]

    def filter(self, key: str, value: str) -> list[User]:
        """Return users whose ``key`` attribute matches ``value``.

        ``value`` may contain ``*`` wildcards; other filter metacharacters
        are escaped. The result is a list, empty when nothing matches.
        """
        self.validate_filter(key, value)
        search_filter = WILDCARD_USER_SEARCH_FILTER.format(
            key=key, value=escape_ldap_filter_value(value, allow_wildcard=True)
        )
        return self.parse_search_result(self.conn.search(self.users_search_request(search_filter)))

    def filter_by_status(self, status: str) -> list[User]:
        self.validate_status(status)
        return self.filter(STATUS_ATTR, status)

    def filter_by_type(self, user_type: str) -> list[User]:
        if user_type == USER_TYPE_PERSONAL:
            self.classifier.compile()
            return self.classifier.personal(self.get_all())
        if user_type == USER_TYPE_BUILDER:
            return self.filter(USER_ID_ATTR, self.classifier.builder_filter)
        if user_type == USER_TYPE_NPA:
            self.classifier.compile()
            return self.classifier.npa(self.get_all())
        raise BadRequestError(f"Invalid type '{user_type}'. Valid types are {VALID_USER_TYPES}")

    def create(self, user: User) -> None:
        """Add the user, then set its password through the password modify operation.

        The two steps are separate round trips: if the second fails the
        entry stays in the directory.

        Raises
        ------
        ConflictError
            An entry with this uid already exists.
        """
        self.validate_user(user)
        try:
            self.conn.add(self.add_request(user))
        except EntryAlreadyExistsError as e:
            raise ConflictError(f"User with uid = '{user.uid}' already exists") from e
        self._modify_password(user.uid, user.user_password, user.user_password)

    def delete(self, uid: str) -> None:
        self.validate_uid(uid)
        try:
            self.conn.delete(DeleteRequest(dn=self.get_dn(uid)))
        except NotFoundError as e:
            raise _not_found(uid) from e

    def authenticate(self) -> None:
        """Check that the configured bind credentials are accepted."""
        self.conn.authenticate()

    def set_new_password(self, uid: str, new_password: str = "") -> str:
        """Set ``new_password`` and return it.

        With an empty ``new_password`` the directory generates one, which is
        returned instead.
        """
        self.validate_uid(uid)
        if not new_password:
            generated = self._modify_password(uid, "", "")
            return generated or ""
        self._modify_password(uid, "", new_password)
        return new_password

    def _modify_password(self, uid: str, old_password: str, new_password: str) -> Optional[str]:
        request = PasswordModifyRequest(dn=self.get_dn(uid), old_password=old_password, new_password=new_password)
        try:
            return self.conn.password_modify(request)
        except NotFoundError as e:
            raise _not_found(uid) from e

    def get_dn(self, uid: str) -> str:
        return f"{USER_ID_ATTR}={uid},{self.conn.cfg.user_base_dn}"

    def users_search_request(self, search_filter: str) -> SearchRequest:
        return SearchRequest(
            base_dn=self.conn.cfg.user_base_dn,
            scope=SUBTREE,
            search_filter=search_filter,
            attributes=list(USER_ATTRIBUTES),
        )

    def user_search_request(self, dn: str) -> SearchRequest:
        return SearchRequest(
            base_dn=dn,
            scope=BASE,
            search_filter=USER_SEARCH_FILTER,
            attributes=list(USER_ATTRIBUTES),
        )

    def add_request(self, user: User) -> AddRequest:
        ar = AddRequest(dn=self.get_dn(user.uid))
        ar.attribute(OBJECT_CLASS_ATTR, DEFAULT_USER_OBJECT_CLASSES)
        ar.attribute(USER_ID_ATTR, [user.uid])
        ar.attribute(ALTERNATE_USER_ID_ATTR, [user.alt_uid])
        ar.attribute(COMMON_NAME_ATTR, [user.cn])
        ar.attribute(FAMILY_NAME_ATTR, [user.sn])
        ar.attribute(DISPLAY_NAME_ATTR, [user.display_name])
        if user.employee_number:
            ar.attribute(EMPLOYEE_NUMBER_ATTR, [user.employee_number])
        ar.attribute(MAIL_ATTR, [user.mail])
        ar.attribute(USER_PASSWORD_ATTR, [user.user_password])
        ar.attribute(STATUS_ATTR, [user.status])
        return ar

    @staticmethod
    def parse_search_result(entries: list[Entry]) -> list[User]:
        # userPassword is write-only and never requested.
        return [
            User(
                uid=e.get_attribute_value(USER_ID_ATTR),
                alt_uid=e.get_attribute_value(ALTERNATE_USER_ID_ATTR),
                cn=e.get_attribute_value(COMMON_NAME_ATTR),
                sn=e.get_attribute_value(FAMILY_NAME_ATTR),
                display_name=e.get_attribute_value(DISPLAY_NAME_ATTR),
                employee_number=e.get_attribute_value(EMPLOYEE_NUMBER_ATTR),
                mail=e.get_attribute_value(MAIL_ATTR),
                status=e.get_attribute_value(STATUS_ATTR),
            )
            for e in entries
        ]

    def validate_uid(self, uid: str) -> None:
        if not (uid or "").strip():
            raise MissingParametersError([USER_ID_ATTR])

    def validate_user(self, user: User) -> None:
        required = [
            (USER_ID_ATTR, user.uid),
            (ALTERNATE_USER_ID_ATTR, user.alt_uid),
            (COMMON_NAME_ATTR, user.cn),
            (FAMILY_NAME_ATTR, user.sn),
            (DISPLAY_NAME_ATTR, user.display_name),
            (MAIL_ATTR, user.mail),
            (USER_PASSWORD_ATTR, user.user_password),
            (STATUS_ATTR, user.status),
        ]
        missing = [name for name, value in required if not (value or "").strip()]
        if missing:
            raise MissingParametersError(missing)
        self.validate_status(user.status)

    def validate_filter(self, key: str, value: str) -> None:
        missing = []
        if not (key or "").strip():
            missing.append("key")
        if not (value or "").strip():
            missing.append("value")
        if missing:
            raise MissingParametersError(missing)
        if key not in USER_ATTRIBUTES:
            raise BadRequestError(f"Invalid filter key '{key}'. Valid filter keys are {USER_ATTRIBUTES}")

    def validate_status(self, status: str) -> None:
        if status not in VALID_STATUSES:
            raise BadRequestError(f"Invalid status '{status}'. Valid statuses are {VALID_STATUSES}")
