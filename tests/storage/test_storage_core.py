"""Tests for slugify and storage initialization."""

from pathlib import Path

from galmode import storage


def test_slugify_basic():
    assert storage.slugify("Lady Sylvie") == "lady-sylvie"


def test_slugify_apostrophe():
    assert storage.slugify("Mira's Shadow") == "miras-shadow"


def test_slugify_unicode():
    assert storage.slugify("Café Münch") == "cafe-munch"


def test_slugify_empty():
    assert storage.slugify("") == "unnamed"
    assert storage.slugify("アリス") == "unnamed"


def test_init_storage_creates_layout(tmp_path):
    storage.init_storage(tmp_path / "data")
    assert storage.data_dir() == tmp_path / "data"
    assert (tmp_path / "data" / "saves").is_dir()


def test_conftest_storage_dir():
    assert storage.data_dir() == Path("data-tests")
