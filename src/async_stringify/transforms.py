"""Reusable node transforms."""

import asyncio
import inspect
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Iterable, Optional, Union
from .types import Transform, UNDEFINED


FILE_REFERENCE_KEY = "$file"

logger = logging.getLogger(__name__)


async def identity(context: Any, key: str, value: Any) -> Any:
    """Keep every value as it is."""
    return value


def redact_keys(keys: Iterable[str]) -> Transform:
    """Drop every member whose key is in *keys*, at any depth."""
    hidden = frozenset(keys)

    async def redact(context: Any, key: str, value: Any) -> Any:
        if key in hidden and isinstance(context, Mapping):
            return UNDEFINED
        return value

    return redact


async def resolve_awaitables(context: Any, key: str, value: Any) -> Any:
    """Await coroutine, task and future values before they are encoded."""
    if inspect.isawaitable(value):
        return await value
    return value


def inline_json_files(base_dir: Union[str, Path, None] = None) -> Transform:
    """
    Replace ``{"$file": "relative/path.json"}`` objects by the parsed
    contents of that file.

    Files are read in a worker thread so the event loop stays free while
    the disk is busy. Paths are resolved against *base_dir* (the current
    directory by default). The inlined document is itself walked, so file
    references inside it are followed too.
    """
    root = Path(base_dir) if base_dir is not None else Path.cwd()

    async def inline(context: Any, key: str, value: Any) -> Any:
        if not (isinstance(value, Mapping) and set(value) == {FILE_REFERENCE_KEY}):
            return value
        reference = value[FILE_REFERENCE_KEY]
        if not isinstance(reference, str):
            return value
        path = root / reference
        logger.debug(f"Inlining {path} at key '{key}'")
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return json.loads(text)

    return inline


def chain(*transforms: Optional[Transform]) -> Transform:
    """
    Compose transforms left to right.

    Each transform sees the output of the previous one; once a value
    becomes ``UNDEFINED`` the remaining transforms are skipped.
    """
    steps = [t for t in transforms if t is not None]

    async def chained(context: Any, key: str, value: Any) -> Any:
        for step in steps:
            value = step(context, key, value)
            if inspect.isawaitable(value):
                value = await value
            if value is UNDEFINED:
                break
        return value

    return chained
