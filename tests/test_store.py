"""Tests for the tag store, file ordering and serialization."""

import pytest

from perltags.models import Tag, TagKind
from perltags.serializer import Serializer
from perltags.store import OrderTracker, SeenSet, TagStore


def _tag(name, file, linenum=1, kind=TagKind.SUB, **kwargs):
    return Tag(name=name, kind=kind, file=file, line=f"sub {name} {{", linenum=linenum, **kwargs)


class TestTagStore:
    """Tests for TagStore."""

    def test_groups_by_name_then_file(self):
        store = TagStore()
        store.add("/a.pm", _tag("foo", "/a.pm"))
        store.add("/b.pm", _tag("foo", "/b.pm"))
        store.add("/a.pm", _tag("bar", "/a.pm"))

        assert store.names() == ["bar", "foo"]
        assert set(store.files_for("foo")) == {"/a.pm", "/b.pm"}
        assert len(store) == 3
        assert "foo" in store

    def test_remove_file_drops_empty_names(self):
        store = TagStore()
        store.add("/a.pm", _tag("foo", "/a.pm"))
        store.add("/a.pm", _tag("foo", "/a.pm", 5))
        store.add("/b.pm", _tag("foo", "/b.pm"))
        store.add("/a.pm", _tag("only_a", "/a.pm"))

        assert store.remove_file("/a.pm") == 3
        assert "only_a" not in store
        assert list(store.files_for("foo")) == ["/b.pm"]
        assert store.tags_for_file("/a.pm") == []

    def test_remove_unknown_file(self):
        store = TagStore()
        store.add("/a.pm", _tag("foo", "/a.pm"))
        assert store.remove_file("/nope.pm") == 0
        assert len(store) == 1

    def test_tags_for_file_grouped_by_name(self):
        store = TagStore()
        store.add("/a.pm", _tag("a", "/a.pm", 1))
        store.add("/a.pm", _tag("b", "/a.pm", 2))
        store.add("/a.pm", _tag("a", "/a.pm", 3))

        assert [(t.name, t.linenum) for t in store.tags_for_file("/a.pm")] == [("a", 1), ("a", 3), ("b", 2)]


class TestOrderTracker:
    """Order numbers are dense, first-seen, and never re-assigned."""

    def test_dense_first_seen(self):
        order = OrderTracker()
        assert order.assign("/a.pm") == 0
        assert order.assign("/b.pm") == 1
        assert order.assign("/a.pm") == 0
        assert order.assign("/c.pm") == 2
        assert order.files() == ["/a.pm", "/b.pm", "/c.pm"]
        assert len(order) == 3

    def test_unknown_files_sort_last(self):
        order = OrderTracker()
        order.assign("/z.pm")
        assert sorted(["/b.pm", "/z.pm", "/a.pm"], key=order.sort_key) == ["/z.pm", "/a.pm", "/b.pm"]


def test_seen_set():
    seen = SeenSet()
    seen.add("/a.pm")
    seen.add("/a.pm")
    assert "/a.pm" in seen
    assert len(seen) == 1
    seen.discard("/a.pm")
    seen.discard("/a.pm")
    assert "/a.pm" not in seen


class TestSerializer:
    """Tests for the sorted text rendering."""

    def test_empty_store(self):
        assert Serializer(TagStore(), OrderTracker()).to_string() == ""

    def test_name_then_order_then_extraction(self):
        store, order = TagStore(), OrderTracker()
        order.assign("/late.pm")
        order.assign("/early.pm")
        # insertion order of the outer map must not matter
        store.add("/early.pm", _tag("foo", "/early.pm", 9))
        store.add("/early.pm", _tag("foo", "/early.pm", 3))
        store.add("/late.pm", _tag("foo", "/late.pm", 1))
        store.add("/early.pm", _tag("bar", "/early.pm", 1))

        rows = [line.split("\t")[:2] for line in Serializer(store, order).lines()]
        assert rows == [
            ["bar", "/early.pm"],
            ["foo", "/late.pm"],
            ["foo", "/early.pm"],
            ["foo", "/early.pm"],
        ]

    def test_lexicographic_names(self):
        store, order = TagStore(), OrderTracker()
        order.assign("/a.pm")
        for name in ("beta", "Alpha", "alpha", "_private"):
            store.add("/a.pm", _tag(name, "/a.pm"))
        names = [line.split("\t")[0] for line in Serializer(store, order).to_string().split("\n")]
        assert names == ["Alpha", "_private", "alpha", "beta"]


class TestTagLine:
    """Tests for Tag.to_line()."""

    def test_plain_line(self):
        tag = Tag(name="run", kind=TagKind.SUB, file="/x/App.pm", line="sub run {\n", linenum=12)
        assert tag.to_line() == "run\t/x/App.pm\t/sub run {/"

    def test_escapes_pattern(self):
        tag = Tag(name="path", kind=TagKind.VARIABLE, file="/a.pm", line=r"my $path = 'a/b\c';")
        assert tag.to_line() == "path\t/a.pm\t/my $path = 'a\\/b\\\\c';/"

    @pytest.mark.parametrize(
        "tag, suffix",
        [
            (Tag(name="run", kind=TagKind.SUB, line="sub run {", linenum=4, pkg="My::App", exts=True),
             ';"\ts\tline:4\tclass:My::App'),
            (Tag(name="x", kind=TagKind.VARIABLE, line="my $x;", linenum=2, is_static=True, exts=True),
             ';"\tv\tline:2\tfile:'),
            (Tag(name="LOOP", kind=TagKind.LABEL, line="LOOP: {", exts=True),
             ';"\tl'),
        ],
    )
    def test_exuberant_fields(self, tag, suffix):
        tag.file = "/a.pm"
        assert tag.to_line().endswith(suffix)
