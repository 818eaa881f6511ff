"""Read a named JSON source from disk and classify what went wrong."""

import json

from .errors import SourceNotFound, SourceParseError, SourceReadError


def read_source(path: str):
    """Read and parse a JSON source.

    Returns:
        The parsed JSON value.

    Raises:
        SourceNotFound: the file does not exist.
        SourceReadError: the file exists but could not be read or decoded.
        SourceParseError: the file was read but is not valid JSON.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except FileNotFoundError as e:
        raise SourceNotFound(path, e) from e
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(path, e) from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise SourceParseError(path, e) from e
