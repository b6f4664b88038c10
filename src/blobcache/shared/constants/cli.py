"""
CLI Constants

This module contains the constants used by the blobcache command-line
interface: command names, help texts and exit codes.
"""


class CLICommands:
    """Command names."""

    GET = "get"
    SET = "set"
    REMOVE = "remove"
    CONTAINS = "contains"
    KEYS = "keys"
    DUMP = "dump"
    CLEAR = "clear"


class CLIDefaults:
    """Default CLI values."""

    EXIT_ERROR = 1


class CLIHelp:
    """Help texts."""

    APP_NAME = "blobcache"
    APP_DESCRIPTION = "Inspect and edit a blobcache document from the command line."
    STORE_HELP = "Backing store location (file or SQLite path)"
    BACKEND_HELP = "Backing store implementation (memory, file, sqlite)"
    PROFILE_HELP = "Accessor profile (strict, lenient)"
    LOG_LEVEL_HELP = "Log level"
    JSON_HELP = "Output results in JSON format"
    TYPE_HELP = "Type to coerce the stored value to"
    VALUE_HELP = "Value to store; parsed as JSON, falling back to a plain string"
    YES_HELP = "Do not ask for confirmation"


class ValueTypes:
    """Type names accepted by ``blobcache get --type``."""

    RAW = "raw"
    STR = "str"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOL = "bool"

    ALL = (RAW, STR, INT, LONG, FLOAT, DOUBLE, BOOL)
