import io
import json

import pytest
from PIL import Image
from responses import RequestsMock


@pytest.fixture
def responses():
    with RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def image_bytes(image_format, size=(40, 60)):
    output = io.BytesIO()
    Image.new("RGB", size, (10, 200, 30)).save(output, image_format)
    return output.getvalue()


@pytest.fixture
def jpeg_bytes():
    return image_bytes("JPEG")


@pytest.fixture
def png_bytes():
    return image_bytes("PNG")


@pytest.fixture
def book_dir(tmp_path, png_bytes):
    """A directory holding a small book description and its files."""
    (tmp_path / "ch1.xhtml").write_text("<html><body><h1 id='s1'>One</h1></body></html>")
    (tmp_path / "ch2.xhtml").write_text("<html><body><h1>Two</h1></body></html>")
    (tmp_path / "book.css").write_text("body { margin: 0; }")
    (tmp_path / "cover.png").write_bytes(png_bytes)
    book = {
        "title": "My Book: the sequel",
        "author": ["Ann Onymous", "Someone Else"],
        "lang": "en",
        "description": "A test & a half",
        "subject": ["Testing"],
        "uuid": "a1b2c3d4-0000-4000-8000-000000000002",
        "modified": "2021-05-06T07:08:09Z",
        "stylesheet": "book.css",
        "cover_image": {"path": "images/cover.png", "file": "cover.png"},
        "resources": [{"path": "notes.txt", "text": "notes"}],
        "meta": [{"name": "primary-writing-mode", "content": "horizontal-lr"}],
        "contents": [
            {"path": "title.xhtml", "text": "<html/>", "title": "Title", "reftype": "title_page"},
            {
                "path": "ch1.xhtml",
                "file": "ch1.xhtml",
                "title": "One",
                "reftype": "text",
                "children": [{"href": "ch1.xhtml#s1", "title": "Section 1"}],
            },
            {"path": "ch2.xhtml", "file": "ch2.xhtml", "title": "Two"},
            {"path": "ch2b.xhtml", "text": "<html/>", "title": "Two, part b", "level": 2},
        ],
    }
    (tmp_path / "book.json").write_text(json.dumps(book))
    return tmp_path
