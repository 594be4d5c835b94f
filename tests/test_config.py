from pathlib import Path

import pytest

from pics_down.config import KNOWN_IMAGE_EXTENSIONS, DownloadConfig, parse_extension_list
from pics_down.errors import ConfigurationError


def test_defaults(tmp_path):
    config = DownloadConfig(output_dir=tmp_path)
    assert config.prefix_len == 2
    assert config.static_prefix == ""
    assert config.user_agent == "Mozilla/5.0"
    assert config.log_path == tmp_path / "pics-down.log"
    assert config.url_list_path == tmp_path / "image_urls.txt"


def test_config_is_immutable(tmp_path):
    config = DownloadConfig(output_dir=tmp_path)
    with pytest.raises(AttributeError):
        config.prefix_len = 5


@pytest.mark.parametrize(
    "overrides",
    [
        {"prefix_len": -1},
        {"workers": 0},
        {"timeout": 0},
        {"parser": "lxml"},
        {"attributes": ()},
        {"static_prefix": "../evil-"},
    ],
)
def test_invalid_values(overrides):
    with pytest.raises(ConfigurationError):
        DownloadConfig(output_dir=Path("."), **overrides)


def test_parse_extension_list():
    assert parse_extension_list("jpg, .PNG,,gif") == {"jpg", "png", "gif"}
    with pytest.raises(ConfigurationError):
        parse_extension_list(" , ")
    with pytest.raises(ConfigurationError):
        parse_extension_list("jpg,p*g")


def test_known_extensions_cover_every_class():
    assert {"jpg", "jpeg", "png", "gif", "webp", "svg", "tif"} <= KNOWN_IMAGE_EXTENSIONS
