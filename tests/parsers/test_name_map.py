import json
from pathlib import Path

import pytest

from thermal_colorizer.exceptions import ConfigurationError
from thermal_colorizer.parsers import load_name_map


def test_load_name_map(tmp_path: Path):
    path = tmp_path / "names.json"
    path.write_text(json.dumps({"img_001.tif": "scanpos01_0001", "img_002": "scanpos01_0002"}))

    name_map = load_name_map(path)

    assert name_map["img_001.tif"] == "scanpos01_0001"
    assert dict(name_map) == {"img_001.tif": "scanpos01_0001", "img_002": "scanpos01_0002"}
    with pytest.raises(TypeError):
        name_map["img_003.tif"] = "scanpos01_0003"  # type: ignore[index]


@pytest.mark.parametrize(
    "content",
    (
        pytest.param('["img_001.tif"]', id="not an object"),
        pytest.param('{"img_001.tif": 1}', id="not a string"),
        pytest.param("{", id="invalid json"),
    ),
)
def test_invalid_name_map(content: str, tmp_path: Path):
    path = tmp_path / "names.json"
    path.write_text(content)

    with pytest.raises(ConfigurationError, match="Invalid name map"):
        load_name_map(path)


def test_missing_name_map(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="Cannot read name map"):
        load_name_map(tmp_path / "missing.json")
