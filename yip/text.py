"""Centralized user-facing text for the yip CLI."""

from __future__ import annotations

class Styles:
    ERROR = "red"
    WARNING = "yellow"
    SUCCESS = "green"
    INFO = "dim"
    TITLE = "bold cyan"
    TABLE_HEADER = "bold magenta"


class Messages:
    APP_HELP = "yip - cross-platform project generator (build state and dependency tools)."
    HELP_VERSION = "Show version and exit."
    HELP_VERBOSE = "Log every keep/write decision and git operation."
    HELP_CONFIG_DIR = "Directory holding config.json (defaults to ~/.yip)."
    HELP_PROJECT_PATH = "Project root whose state directory should be used."
    HELP_STATUS_FILES = "List every tracked generated file."
    HELP_IMPORT_NAMES = "Dependency aliases or git URLs to clone into the state directory."
    HELP_SET_REPO = "Add or replace a repository alias, written as NAME=URL."
    HELP_REMOVE_REPO = "Remove a user-defined repository alias."
    HELP_SHOW_CONFIG = "Show current configuration."

    ERROR_PREFIX = "error: "
    ERROR_REPO_FORMAT = "Repository alias must be written as NAME=URL, got '{value}'."

    INFO_RESYNCED = "Project directory has changed; cached file records were discarded."
    INFO_STATUS_HEADER = "State directory: {path}"
    INFO_STATUS_SUMMARY = (
        "Project root: {root}\n"
        "Schema version: {version}\n"
        "Tracked files: {files}"
    )
    INFO_STATUS_NO_STATE = "No state directory at {path}; nothing has been generated yet."
    INFO_PROJECT_FILE = "Project file: {path} ({state})"
    INFO_STATUS_DRIFT = "{missing} missing, {modified} modified since last write."
    INFO_IMPORT_CLONED = "Cloned {name} into {path}."
    INFO_IMPORT_EXISTING = "Using cached {name} at {path}."
    INFO_UPDATE_NONE = "Nothing to update."
    INFO_UPDATE_CHANGED = "Updated {name}: {before} -> {after}."
    INFO_UPDATE_CURRENT = "{name} is already up to date ({head})."
    INFO_FORGET_DONE = "Forgot {count} tracked file{plural}; the next run rewrites all outputs."
    INFO_REPO_SET = "Repository alias {name} set to {url}."
    INFO_REPO_REMOVED = "Repository alias {name} removed."
    INFO_REPO_MISSING = "No user-defined repository alias named {name}."
    INFO_CONFIG_SUMMARY = (
        "Config file: {path}\n"
        "Project file name: {project_file}\n"
        "State directory name: {state_dir}\n"
        "Custom repositories: {repos}"
    )

    TABLE_FLAGS_TITLE = "Flags"
    TABLE_FILES_TITLE = "Tracked files"
    TABLE_HEADER_FLAG = "Flag"
    TABLE_HEADER_VALUE = "Set"
    TABLE_HEADER_PATH = "File path"
    TABLE_HEADER_SIZE = "Size"
    TABLE_HEADER_DIGEST = "Digest"
    TABLE_HEADER_STATE = "State"
    FILE_STATE_OK = "ok"
    FILE_STATE_MISSING = "missing"
    FILE_STATE_MODIFIED = "modified"
    PROJECT_FILE_FOUND = "found"
    PROJECT_FILE_MISSING = "missing"
