import pytest

from pics_down.naming import extension_for, name_for


def test_sequence_with_static_prefix():
    urls = [f"http://a.test/img/photo{n}.png" for n in range(1, 13)]
    names = [name_for(n, url, 3, "pic-") for n, url in enumerate(urls, start=1)]
    assert names[0] == "pic-001.png"
    assert names[-1] == "pic-012.png"
    assert len(set(names)) == 12


def test_extension_follows_source_url():
    assert name_for(7, "http://a.test/x/2.PNG", 2) == "07.PNG"
    assert name_for(1, "http://a.test/x/photo.jpeg?w=200", 2) == "01.jpeg"


@pytest.mark.parametrize(
    "url",
    [
        "http://a.test/image?id=3",
        "http://a.test/render.php?id=3",
        "http://a.test/gallery/",
        "http://a.test/archive.tar.gz",
        "http://a.test/file.abcdefghij",
    ],
)
def test_fallback_extension(url):
    assert extension_for(url) == ".jpg"
    assert name_for(1, url, 2).endswith(".jpg")


def test_field_widens_instead_of_truncating():
    assert name_for(123, "http://a.test/a.gif", 2) == "123.gif"
    assert name_for(5, "http://a.test/a.gif", 0) == "5.gif"


def test_no_separator_is_added():
    assert name_for(1, "http://a.test/a.webp", 2, "trip") == "trip01.webp"


def test_ordinal_must_be_positive():
    with pytest.raises(ValueError):
        name_for(0, "http://a.test/a.jpg", 2)


def test_malformed_url_falls_back():
    assert extension_for("http://[broken/a.png") == ".jpg"


def test_extra_known_extensions():
    assert name_for(1, "http://a.test/a.heic", 2) == "01.jpg"
    assert name_for(1, "http://a.test/a.heic", 2, known={"heic"}) == "01.heic"
