import pytest

from report_dashboard.utils.paths import (
    ROOT,
    base_name,
    get_parent,
    is_traversal,
    join_path,
    normalize_path,
    relative_to,
    segments,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", "/"),
        (None, "/"),
        ("/", "/"),
        ("test_pipeline_results", "/test_pipeline_results"),
        ("/test_pipeline_results/", "/test_pipeline_results"),
        ("//test_pipeline_results//job_001///", "/test_pipeline_results/job_001"),
        ("a\\b", "/a/b"),
    ],
)
def test_normalize_path(raw, expected):
    assert normalize_path(raw) == expected


@pytest.mark.parametrize("raw", ["", "/", "a", "/a/b/", "//x//y", "a/b/c.log"])
def test_normalize_path_is_idempotent(raw):
    once = normalize_path(raw)
    assert normalize_path(once) == once
    assert once.startswith("/")
    assert once == "/" or not once.endswith("/")


def test_get_parent():
    assert get_parent("/") is None
    assert get_parent("/a") == "/"
    assert get_parent("/a/b/c.log") == "/a/b"
    assert get_parent("a/b/") == "/a"


def test_base_name_and_join():
    assert base_name(ROOT) == "/"
    assert base_name("/a/b/c.log") == "c.log"
    assert join_path("/", "a") == "/a"
    assert join_path("/a/", "b") == "/a/b"
    assert segments("/a//b/") == ["a", "b"]


def test_relative_to():
    assert relative_to("/a/b/c.log", "/a") == "b/c.log"
    assert relative_to("/a/b", "/") == "a/b"
    with pytest.raises(ValueError):
        relative_to("/ab/c", "/a")


def test_is_traversal():
    assert is_traversal("../etc/passwd")
    assert is_traversal("/a/../../b")
    assert is_traversal("a\\..\\b")
    assert not is_traversal("/a/..b/c")
    assert not is_traversal("")
