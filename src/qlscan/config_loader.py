# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Load the YAML scan configuration from a file and/or an inline string."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

import yaml
from pydantic import ValidationError

from .config import ScanConfig
from .discovery.rules import Rule
from .errors import ConfigError
from .logging import RunLogger

_PATH_LIST_KEYS: Final[tuple[str, ...]] = ("paths", "paths-ignore", "packs")
_PATH_RULE_KEYS: Final[frozenset[str]] = frozenset(("paths", "paths-ignore"))
_QUERY_FILTERS_KEY: Final[str] = "query-filters"
_LANGUAGES_KEY: Final[str] = "languages"
_KNOWN_KEYS: Final[frozenset[str]] = frozenset((*_PATH_LIST_KEYS, _QUERY_FILTERS_KEY, _LANGUAGES_KEY))


def load_config(
    *,
    config_file: Path | None = None,
    config_text: str | None = None,
    logger: RunLogger,
) -> ScanConfig | None:
    """Load configuration from ``config_file`` and ``config_text``.

    Keys present in the inline text override the same keys from the file.

    Args:
        config_file: Optional path to a YAML configuration file.
        config_text: Optional YAML document supplied inline.
        logger: Logger receiving audit messages.

    Returns:
        ScanConfig | None: Merged configuration, or ``None`` when neither
        source was supplied.

    Raises:
        ConfigError: If a supplied source is missing, unparseable or not a mapping.
    """

    file_config: ScanConfig | None = None
    text_config: ScanConfig | None = None

    if config_file is not None:
        logger.info(f"Loading config file: {config_file}")
        file_config = load_config_file(config_file, logger=logger)
        logger.info(f"Config paths: {list(file_config.paths) or 'none'}")
        logger.info(f"Config paths-ignore: {list(file_config.paths_ignore) or 'none'}")

    if config_text:
        text_config = parse_config_text(config_text, source="inline config", logger=logger)
        logger.info("Inline YAML configuration parsed successfully")

    if file_config is not None and text_config is not None:
        overrides = {name: getattr(text_config, name) for name in text_config.model_fields_set}
        return file_config.model_copy(update=overrides)
    if text_config is not None:
        return text_config
    if file_config is not None:
        return file_config
    logger.info("No configuration provided - all files will be included")
    return None


def load_config_file(path: Path, *, logger: RunLogger) -> ScanConfig:
    """Read and validate the YAML document stored at ``path``.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed.
    """

    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Unable to read configuration file {path}: {exc}") from exc
    return parse_config_text(content, source=str(path), logger=logger)


def parse_config_text(text: str, *, source: str, logger: RunLogger) -> ScanConfig:
    """Parse ``text`` as YAML and return the validated configuration.

    Invalid individual entries are dropped with a warning naming them, which
    keeps "rules were rejected" distinguishable from "no rules configured".

    Args:
        text: YAML document.
        source: Human-readable origin used in messages.
        logger: Logger receiving warnings for rejected entries.

    Returns:
        ScanConfig: Validated configuration.

    Raises:
        ConfigError: If the document cannot be parsed or is not a mapping.
    """

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{source}: invalid YAML: {exc}") from exc
    if document is None:
        logger.warn(f"{source}: configuration document is empty")
        return ScanConfig()
    if not isinstance(document, Mapping):
        raise ConfigError(f"{source}: configuration must be a mapping, got {type(document).__name__}")

    payload = _sanitize_document(document, source=source, logger=logger)
    try:
        config = ScanConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"{source}: invalid configuration: {exc}") from exc
    logger.info(f"{source}: parsed configuration {config.describe()}")
    return config


def _sanitize_document(document: Mapping[Any, Any], *, source: str, logger: RunLogger) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key in document:
        if key not in _KNOWN_KEYS:
            logger.debug(f"{source}: ignoring unknown key {key!r}")

    for key in _PATH_LIST_KEYS:
        if key in document:
            payload[key] = _valid_strings(document[key], key=key, source=source, logger=logger)

    if _QUERY_FILTERS_KEY in document:
        payload[_QUERY_FILTERS_KEY] = _valid_query_filters(document[_QUERY_FILTERS_KEY], source=source, logger=logger)

    if _LANGUAGES_KEY in document:
        languages = _parse_languages_value(document[_LANGUAGES_KEY], source=source, logger=logger)
        if languages:
            payload[_LANGUAGES_KEY] = languages
    return payload


def _valid_strings(value: object, *, key: str, source: str, logger: RunLogger) -> list[str]:
    """Return the non-empty string entries of a YAML list.

    Entries of ``paths`` and ``paths-ignore`` must also parse as path rules.
    """

    if value is None:
        return []
    if not isinstance(value, list):
        logger.warn(f"{source}: '{key}' must be a list of strings; ignoring {value!r}")
        return []
    accepted: list[str] = []
    rejected: list[object] = []
    for entry in value:
        if isinstance(entry, str) and entry.strip() and _is_valid_entry(entry, key=key):
            accepted.append(entry.strip())
        else:
            rejected.append(entry)
    if rejected:
        logger.warn(f"{source}: rejected invalid '{key}' entries: {rejected!r}")
    return accepted


def _is_valid_entry(entry: str, *, key: str) -> bool:
    if key not in _PATH_RULE_KEYS:
        return True
    try:
        Rule.parse(entry)
    except ValueError:
        return False
    return True


def _valid_query_filters(value: object, *, source: str, logger: RunLogger) -> list[dict[str, dict[str, str]]]:
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warn(f"{source}: 'query-filters' must be a list; ignoring {value!r}")
        return []
    accepted: list[dict[str, dict[str, str]]] = []
    rejected: list[object] = []
    for entry in value:
        exclude = entry.get("exclude") if isinstance(entry, Mapping) else None
        rule_id = exclude.get("id") if isinstance(exclude, Mapping) else None
        if isinstance(rule_id, str) and rule_id:
            accepted.append({"exclude": {"id": rule_id}})
        else:
            rejected.append(entry)
    if rejected:
        logger.warn(f"{source}: rejected invalid 'query-filters' entries: {rejected!r}")
    return accepted


def _parse_languages_value(value: object, *, source: str, logger: RunLogger) -> list[str]:
    if isinstance(value, str):
        # Scalar form is deprecated but still accepted.
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    logger.warn(f"{source}: 'languages' must be a list or comma-separated string; ignoring {value!r}")
    return []


__all__ = ["load_config", "load_config_file", "parse_config_text"]
