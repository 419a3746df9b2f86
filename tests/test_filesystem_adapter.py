import asyncio
import time

import pytest

from report_dashboard.errors import NotAFile, NotFound
from report_dashboard.services import filesystem_adapter
from report_dashboard.services.filesystem_adapter import FileSystemAdapter


@pytest.fixture
def adapter(small_tree):
    return FileSystemAdapter(small_tree)


def test_list_puts_folders_first(adapter):
    items = asyncio.run(adapter.list("/reports"))
    assert [item.name for item in items] == ["empty", "nested", "a.log", "b.json"]
    assert all(item.parent_path == "/reports" for item in items)
    assert items[0].mime_type == "directory"
    assert items[2].content == "alpha"
    assert items[2].size == 5


def test_list_of_missing_or_file_path_is_empty(adapter):
    assert asyncio.run(adapter.list("/missing")) == []
    assert asyncio.run(adapter.list("/top.txt")) == []


def test_list_root(adapter):
    names = [item.name for item in asyncio.run(adapter.list(""))]
    assert names == ["reports", "top.txt"]


def test_read(adapter):
    assert asyncio.run(adapter.read("reports/nested/c.txt")) == "gamma gamma"
    with pytest.raises(NotFound):
        asyncio.run(adapter.read("/reports/nope.txt"))
    with pytest.raises(NotAFile):
        asyncio.run(adapter.read("/reports"))


def test_info(adapter):
    entry = asyncio.run(adapter.info("/reports/a.log"))
    assert entry.mime_type == "text/plain"
    assert entry.metadata.description == "Test file: a.log"
    assert entry.metadata.tags == ["file"]
    assert entry.metadata.author == "Test System"

    folder = asyncio.run(adapter.info("/reports"))
    assert folder.is_folder
    assert folder.size == 0
    assert folder.metadata.tags == ["directory"]

    assert asyncio.run(adapter.info("/nothing/here")) is None
    assert asyncio.run(adapter.info("/reports/../top.txt")) is None


def test_exists(adapter):
    assert asyncio.run(adapter.exists("/reports/nested"))
    assert not asyncio.run(adapter.exists("/reports/nested/missing.txt"))


def test_search_is_case_insensitive_and_descends(adapter):
    results = asyncio.run(adapter.search("C.TXT"))
    assert [item.path for item in results] == ["/reports/nested/c.txt"]


def test_search_respects_limit(adapter):
    assert len(asyncio.run(adapter.search("", limit=3))) == 3
    assert asyncio.run(adapter.search("a", limit=0)) == []


def test_stats_counts_immediate_children(adapter):
    assert asyncio.run(adapter.stats("/reports")) == {
        "totalFiles": 2,
        "totalDirectories": 2,
        "totalSize": 5 + 8,
    }
    assert asyncio.run(adapter.stats("/missing")) == {"totalFiles": 0, "totalDirectories": 0, "totalSize": 0}


def test_dangling_symlink_is_skipped(adapter, small_tree):
    (small_tree / "reports" / "broken.log").symlink_to(small_tree / "gone.log")
    names = [item.name for item in asyncio.run(adapter.list("/reports"))]
    assert names == ["empty", "nested", "a.log", "b.json"]
    assert asyncio.run(adapter.search("broken")) == []
    assert asyncio.run(adapter.info("/reports/broken.log")) is None


def test_listing_leaves_event_loop_free(adapter, monkeypatch):
    def slow_read(path):
        time.sleep(0.05)
        return path.read_text(encoding="utf-8")

    monkeypatch.setattr(filesystem_adapter, "read_text", slow_read)

    async def run():
        ticks = 0
        listing = asyncio.ensure_future(adapter.list("/reports"))
        while not listing.done():
            await asyncio.sleep(0.005)
            ticks += 1
        return ticks, await listing

    ticks, items = asyncio.run(run())
    assert len(items) == 4
    assert ticks > 0
