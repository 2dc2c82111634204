"""Utility functions for file I/O."""

import json
import logging
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('frcscout.utils')


def load_json(
    path: Path | str,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Load JSON file with optional schema validation.

    Args:
        path: Path to JSON file (str or Path object)
        schema: Optional Pydantic model to validate against

    Returns:
        Parsed JSON (validated if schema provided)

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed
        ValueError: If schema validation fails

    Example:
        from frcscout.schemas import ScoutingConfig
        config = load_json('data/scouting_config.json', schema=ScoutingConfig)
    """
    path = Path(path)

    logger.debug(f'Loading JSON from: {path}')

    if not path.exists():
        logger.error(f'File not found: {path}')
        raise FileNotFoundError(f'File not found: {path}')

    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f'Invalid JSON in {path}: {e.msg} at position {e.pos}')
        raise json.JSONDecodeError(f'Invalid JSON in {path}: {e.msg}', e.doc, e.pos) from e

    if schema is None:
        return data

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.error(f'Schema validation failed for {path}: {e}')
        raise ValueError(f'Schema validation failed for {path}:\n{e}') from e


def save_json(path: Path | str, data: Any, indent: int = 2) -> None:
    """
    Save data as JSON, creating parent directories as needed.

    Pydantic models are dumped with ``model_dump`` first.

    Raises:
        TypeError: If data is not JSON-serializable
        OSError: If file cannot be written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    json_data = data.model_dump() if isinstance(data, BaseModel) else data

    logger.debug(f'Saving JSON to: {path}')
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(json_data, f, indent=indent, ensure_ascii=False)


def load_rows(path: Path | str) -> list[dict]:
    """
    Load exported table rows.

    Accepts a bare list of rows or an object holding the list under
    ``rows`` or ``scouting_data`` (the shapes the dashboard export produces).

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file holds no list of rows
    """
    data = load_json(path)
    if isinstance(data, dict):
        data = data.get('rows', data.get('scouting_data'))
    if not isinstance(data, list):
        raise ValueError(f'No rows found in {path}')
    rows = [row for row in data if isinstance(row, dict)]
    if len(rows) != len(data):
        logger.warning(f'Skipped {len(data) - len(rows)} non-object rows in {path}')
    return rows
