import pytest

from pics_down.errors import ConfigurationError
from pics_down.urls import page_directory, resolve, validate_page_url

PAGE = "https://example.com/gallery/index.html"


def test_relative_reference_uses_page_directory():
    assert resolve("a.jpg", PAGE) == "https://example.com/gallery/a.jpg"


def test_root_relative_reference_uses_scheme_and_host():
    assert resolve("/img/a.jpg", PAGE) == "https://example.com/img/a.jpg"


def test_absolute_reference_is_unchanged():
    assert resolve("https://cdn.x/a.jpg", PAGE) == "https://cdn.x/a.jpg"


def test_scheme_relative_reference_borrows_page_scheme():
    assert resolve("//cdn.x/a.jpg", PAGE) == "https://cdn.x/a.jpg"


def test_port_is_kept_for_root_relative_reference():
    assert resolve("/a.png", "http://a.test:8080/p/") == "http://a.test:8080/a.png"


def test_page_without_path():
    assert page_directory("https://example.com") == "https://example.com/"
    assert resolve("a.jpg", "https://example.com") == "https://example.com/a.jpg"


def test_page_directory_ignores_query():
    assert page_directory("http://a.test/p/view.php?img=x/y") == "http://a.test/p/"


def test_malformed_page_url_is_an_invariant_violation():
    with pytest.raises(AssertionError):
        resolve("a.jpg", "example.com/index.html")


@pytest.mark.parametrize("url", ["", "   ", "ftp://x", "example.com", "https://", "http://[::1"])
def test_invalid_page_urls_are_rejected(url):
    with pytest.raises(ConfigurationError):
        validate_page_url(url)


def test_valid_page_url_is_stripped():
    assert validate_page_url(" http://a.test/p/ \n") == "http://a.test/p/"
