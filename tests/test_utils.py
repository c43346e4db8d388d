import os

import pytest

from folio import utils
from folio.errors import PathTraversalError
from folio.html_utils import escape_html, inject_before_body_end, strip_tags


def test_slugify_examples():
    assert utils.slugify("My Post!") == "my-post"
    assert utils.slugify("   ") == ""
    assert utils.slugify("") == ""
    assert utils.slugify("!!!") == ""
    assert utils.slugify("Hello,   World") == "hello-world"
    assert utils.slugify("--Already-slugged--") == "already-slugged"
    assert utils.slugify("Café au lait") == "caf-au-lait"


def test_slugify_is_idempotent():
    for title in ["My Post!", "  spaced  out ", "UPPER lower 123", "a--b", "Ünïcode Tïtle"]:
        once = utils.slugify(title)
        assert utils.slugify(once) == once


def test_slugify_keeps_existing_hyphen_runs():
    # Hyphens are inside the allowed set, so runs of them survive
    assert utils.slugify("a--b") == "a--b"
    assert utils.slugify("a - b") == "a---b"


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "build"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "old.txt").write_text("old", encoding="utf-8")
    utils.ensure_clean_dir(target)
    assert target.is_dir()
    assert list(target.iterdir()) == []

    missing = tmp_path / "missing-dir"
    utils.ensure_clean_dir(missing)
    assert missing.is_dir()

    stray_file = tmp_path / "was-a-file"
    stray_file.write_text("x", encoding="utf-8")
    utils.ensure_clean_dir(stray_file)
    assert stray_file.is_dir()


def test_ensure_clean_dir_propagates_errors(monkeypatch, tmp_path):
    target = tmp_path / "build"
    target.mkdir()

    def failing_rmtree(path):
        raise PermissionError("denied")

    monkeypatch.setattr(utils.shutil, "rmtree", failing_rmtree)
    with pytest.raises(PermissionError):
        utils.ensure_clean_dir(target)


def test_confine_path_accepts_nested_paths(tmp_path):
    base = tmp_path / "content"
    base.mkdir()
    assert utils.confine_path(base, "posts/a.md") == (base / "posts" / "a.md").resolve()
    assert utils.confine_path(base, "posts\\b.md") == (base / "posts" / "b.md").resolve()
    assert utils.confine_path(base, "./c.md") == (base / "c.md").resolve()


@pytest.mark.parametrize(
    "bad",
    ["", "  ", ".", "/", "../secret.md", "posts/../../secret.md", "/etc/passwd", "..\\x.md"],
)
def test_confine_path_rejects_escapes(tmp_path, bad):
    base = tmp_path / "content"
    base.mkdir()
    with pytest.raises(PathTraversalError):
        utils.confine_path(base, bad)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_confine_path_rejects_symlink_escape(tmp_path):
    base = tmp_path / "content"
    base.mkdir()
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.md").write_text("x", encoding="utf-8")
    (base / "link").symlink_to(outside, target_is_directory=True)
    with pytest.raises(PathTraversalError):
        utils.confine_path(base, "link/secret.md")


def test_is_markdown_is_case_sensitive(tmp_path):
    assert utils.is_markdown(tmp_path / "post.md")
    assert not utils.is_markdown(tmp_path / "post.MD")
    assert not utils.is_markdown(tmp_path / "post.markdown")
    assert not utils.is_markdown(tmp_path / "notes.md.txt")


def test_copy_tree_preserves_structure(tmp_path):
    source = tmp_path / "static"
    (source / "css").mkdir(parents=True)
    (source / "empty").mkdir()
    (source / "css" / "site.css").write_text("body{}", encoding="utf-8")
    (source / "logo.bin").write_bytes(b"\x00\x01\xff")
    dest = tmp_path / "public"
    dest.mkdir()

    copied = utils.copy_tree(source, dest)
    assert copied == sorted([dest / "css" / "site.css", dest / "logo.bin"])
    assert (dest / "css" / "site.css").read_text(encoding="utf-8") == "body{}"
    assert (dest / "logo.bin").read_bytes() == b"\x00\x01\xff"
    assert (dest / "empty").is_dir()


def test_html_helpers():
    assert escape_html('<a href="x">&</a>') == "&lt;a href=&quot;x&quot;&gt;&amp;&lt;/a&gt;"
    assert strip_tags("Hello <em>world</em>") == "Hello world"
    assert inject_before_body_end("<body>x</body>", "<s>") == "<body>x<s></body>"
    assert inject_before_body_end("x", "<s>") == "x<s>"
