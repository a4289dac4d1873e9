from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from pydantic import TypeAdapter, ValidationError

from ..exceptions import ConfigurationError

type NameMap = Mapping[str, str]

_NAME_MAP_ADAPTER = TypeAdapter(dict[str, str])


def load_name_map(path: Path) -> NameMap:
    """
    Load a map from image file names to project image names.

    The file is a JSON object, e.g. ``{"img_001.tif": "ScanPos001_0001"}``. Keys
    may be full file names or file stems.

    :raises ConfigurationError: If the file cannot be read or is not a string-to-string object.
    """
    try:
        entries = _NAME_MAP_ADAPTER.validate_json(path.read_bytes())
    except OSError as error:
        raise ConfigurationError("Cannot read name map", path=path) from error
    except ValidationError as error:
        raise ConfigurationError(f"Invalid name map: {error}", path=path) from error
    return MappingProxyType(entries)
