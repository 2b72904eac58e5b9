"""Actionable error catalog for XStreamProv."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "config_not_found": {
        "what": "Config file not found: {path}",
        "next": "Check the path or omit `--config` to use command line options only.",
    },
    "invalid_identifier": {
        "what": "Invalid Oracle identifier for {label}: {value!r}.",
        "next": "Use letters, digits, `_`, `$` or `#`, optionally prefixed with `c##` for common users.",
    },
    "invalid_password": {
        "what": "The {label} password cannot be empty or contain double quotes.",
        "next": "Choose another password and retry.",
    },
    "connection_failed": {
        "what": "Could not connect to {dsn}: {detail}",
        "next": "Check host, port, service name and credentials, then retry.",
    },
    "privilege-denied": {
        "what": "Step '{step}' was refused by the database: {detail}",
        "next": "Connect as SYS with SYSDBA (or grant the missing privilege) and re-run; completed steps are skipped.",
    },
    "invalid-state": {
        "what": "Step '{step}' failed because the database is not in the required state: {detail}",
        "next": "Fix the reported condition (for example ARCHIVELOG mode) and re-run.",
    },
    "unsupported-feature": {
        "what": "Step '{step}' needs a feature this database does not offer: {detail}",
        "next": "Check the Oracle edition and options installed on the target database.",
    },
    "connectivity": {
        "what": "Lost the database connection during step '{step}': {detail}",
        "next": "Restore connectivity and re-run; completed steps are skipped.",
    },
    "object-already-exists": {
        "what": "Step '{step}' found the object already present: {detail}",
        "next": "No action needed.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
