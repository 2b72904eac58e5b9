"""Maps Oracle driver errors onto provisioning error categories."""

from typing import Optional, Tuple

import oracledb

from xstreamprov.models import ErrorCategory


class ErrorClassifier:
    """Classifies ``oracledb`` errors by ORA/DPY code."""

    ALREADY_EXISTS_CODES = frozenset(
        {
            955,  # name is already used by an existing object
            1543,  # tablespace already exists
            1920,  # user name conflicts with another user or role name
            1921,  # role name conflicts with another user or role name
            26665,  # STREAMS process already exists
            32588,  # supplemental logging attribute exists
        }
    )
    UNSUPPORTED_CODES = frozenset({439, 1919, 1924, 65040})
    PRIVILEGE_CODES = frozenset({1031, 1045, 1749, 1039, 1017})
    CONNECTIVITY_CODES = frozenset({3113, 3114, 3135, 12170, 12514, 12541, 12543})
    CONNECTIVITY_DPY_PREFIXES = ("DPY-1001", "DPY-4011", "DPY-6005")

    def classify(self, exc: BaseException) -> ErrorCategory:
        if isinstance(exc, oracledb.InterfaceError):
            return ErrorCategory.CONNECTIVITY

        code, full_code = self._codes(exc)
        if full_code and full_code.startswith(self.CONNECTIVITY_DPY_PREFIXES):
            return ErrorCategory.CONNECTIVITY
        if code in self.CONNECTIVITY_CODES:
            return ErrorCategory.CONNECTIVITY
        if code in self.ALREADY_EXISTS_CODES:
            return ErrorCategory.OBJECT_ALREADY_EXISTS
        if code in self.UNSUPPORTED_CODES:
            return ErrorCategory.UNSUPPORTED_FEATURE
        if code in self.PRIVILEGE_CODES:
            return ErrorCategory.PRIVILEGE_DENIED
        return ErrorCategory.INVALID_STATE

    @staticmethod
    def describe(exc: BaseException) -> str:
        error = exc.args[0] if exc.args else None
        message = getattr(error, "message", None)
        if message:
            return str(message).strip()
        return str(exc).strip() or exc.__class__.__name__

    @staticmethod
    def _codes(exc: BaseException) -> Tuple[Optional[int], Optional[str]]:
        if not exc.args:
            return None, None
        error = exc.args[0]
        code = getattr(error, "code", None)
        full_code = getattr(error, "full_code", None)
        try:
            code = int(code) if code else None
        except (TypeError, ValueError):
            code = None
        return code, full_code
