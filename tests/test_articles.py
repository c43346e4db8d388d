from datetime import date, datetime
from pathlib import Path

import pytest

from folio.articles import Article, ArticleRepository, coerce_datetime
from folio.errors import (
    EmptyTitleError,
    InvalidMetadata,
    MalformedFrontMatter,
    NotFoundError,
    PathTraversalError,
    ValidationError,
)


def make_repo(tmp_path: Path) -> ArticleRepository:
    (tmp_path / "content").mkdir()
    return ArticleRepository(tmp_path)


def write(repo: ArticleRepository, rel: str, text: str) -> Path:
    path = repo.content_dir / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_new_article_is_saved_under_posts(tmp_path):
    repo = make_repo(tmp_path)
    article = Article(title="My Post!", date=datetime(2024, 1, 15, 9, 30), body="# Hello\n")

    result = repo.save(article)

    assert result.path == "posts/my-post.md"
    assert result.renamed is False
    assert result.stale_path is None
    assert article.relative_path == "posts/my-post.md"
    text = (repo.content_dir / "posts" / "my-post.md").read_text(encoding="utf-8")
    assert text == "---\ntitle: My Post!\ndate: 2024-01-15 09:30:00\n---\n\n# Hello\n"


def test_saved_article_round_trips(tmp_path):
    repo = make_repo(tmp_path)
    article = Article(
        title="Round Trip",
        date=datetime(2024, 3, 1, 12, 0),
        body="Some *markdown*.\n\n---\n\nAfter a rule.",
        extra={"tags": ["a", "b"], "draft": False},
    )
    path = repo.save(article, "").path

    loaded = repo.read(path)
    assert loaded.title == article.title
    assert loaded.date == article.date
    assert loaded.body == article.body.strip()
    assert loaded.extra == {"tags": ["a", "b"], "draft": False}
    assert loaded.frontmatter() == article.frontmatter()
    assert loaded.relative_path == "posts/round-trip.md"


def test_rename_moves_file_and_deletes_old(tmp_path):
    repo = make_repo(tmp_path)
    write(repo, "posts/old-title.md", "---\ntitle: Old Title\ndate: 2024-01-01\n---\n\nbody")

    article = repo.read("posts/old-title.md")
    article.title = "New Title"
    result = repo.save(article, "posts/old-title.md")

    assert result.path == "posts/new-title.md"
    assert result.renamed is True
    assert result.stale_path is None
    assert not (repo.content_dir / "posts" / "old-title.md").exists()
    assert repo.read("posts/new-title.md").title == "New Title"


def test_rename_keeps_original_directory(tmp_path):
    repo = make_repo(tmp_path)
    write(repo, "guides/setup/install.md", "---\ntitle: Install\ndate: 2024-01-01\n---\nx")

    article = repo.read("guides/setup/install.md")
    article.title = "Installing Folio"
    result = repo.save(article, "guides/setup/install.md")

    assert result.path == "guides/setup/installing-folio.md"
    assert (repo.content_dir / "guides" / "setup" / "installing-folio.md").exists()
    assert not (repo.content_dir / "guides" / "setup" / "install.md").exists()


def test_same_slug_updates_in_place(tmp_path):
    repo = make_repo(tmp_path)
    write(repo, "notes/old-title.md", "---\ntitle: old title\ndate: 2024-01-01\n---\nbefore")

    article = repo.read("notes/old-title.md")
    article.title = "Old Title!"
    article.body = "after"
    result = repo.save(article, "notes/old-title.md")

    assert result.path == "notes/old-title.md"
    assert result.renamed is False
    assert repo.read("notes/old-title.md").body == "after"
    assert sorted(repo.list_files()) == ["notes/old-title.md"]


def test_failed_delete_is_reported(monkeypatch, tmp_path):
    repo = make_repo(tmp_path)
    write(repo, "posts/old-title.md", "---\ntitle: Old Title\ndate: 2024-01-01\n---\nbody")
    original_unlink = Path.unlink

    def failing_unlink(self, *args, **kwargs):
        if self.name == "old-title.md":
            raise PermissionError("denied")
        return original_unlink(self, *args, **kwargs)

    monkeypatch.setattr(Path, "unlink", failing_unlink)
    article = repo.read("posts/old-title.md")
    article.title = "New Title"
    result = repo.save(article, "posts/old-title.md")

    assert result.path == "posts/new-title.md"
    assert result.renamed is True
    assert result.stale_path == "posts/old-title.md"
    assert (repo.content_dir / "posts" / "new-title.md").exists()


def test_case_only_rename_keeps_article(monkeypatch, tmp_path):
    repo = make_repo(tmp_path)
    write(repo, "posts/Hello.md", "---\ntitle: Hello\ndate: 2024-01-01\n---\nbefore")
    old = repo.resolve("posts/Hello.md")
    new = repo.resolve("posts/hello.md")

    # Behave like a case-insensitive filesystem: both names are one file.
    original_samefile = Path.samefile
    monkeypatch.setattr(
        Path,
        "samefile",
        lambda self, other: {self, Path(other)} == {old, new} or original_samefile(self, other),
    )

    def no_unlink(self, *args, **kwargs):
        raise AssertionError(f"unexpected delete of {self}")

    monkeypatch.setattr(Path, "unlink", no_unlink)

    article = repo.read("posts/Hello.md")
    article.body = "after"
    result = repo.save(article, "posts/Hello.md")

    assert result.path == "posts/hello.md"
    assert result.renamed is True
    assert result.stale_path is None
    assert repo.list_files() == ["posts/hello.md"]
    assert repo.read("posts/hello.md").body == "after"


def test_rename_when_original_already_gone(tmp_path):
    repo = make_repo(tmp_path)
    article = Article(title="Fresh", date=datetime(2024, 1, 1))
    result = repo.save(article, "posts/vanished.md")
    assert result.path == "posts/fresh.md"
    assert result.stale_path is None


@pytest.mark.parametrize("title", ["", "   ", "!!!", "¿?"])
def test_empty_slug_is_rejected(tmp_path, title):
    repo = make_repo(tmp_path)
    with pytest.raises(EmptyTitleError):
        repo.save(Article(title=title, date=datetime(2024, 1, 1)))
    assert list(repo.content_dir.iterdir()) == []


def test_read_missing_file(tmp_path):
    repo = make_repo(tmp_path)
    with pytest.raises(NotFoundError):
        repo.read("posts/nope.md")


def test_read_requires_title_and_date(tmp_path):
    repo = make_repo(tmp_path)
    write(repo, "a.md", "---\ndate: 2024-01-01\n---\nbody")
    write(repo, "b.md", "---\ntitle: No Date\n---\nbody")
    write(repo, "c.md", "---\ntitle: Bad Date\ndate: tomorrow\n---\nbody")
    write(repo, "d.md", "---\ntitle: '  '\ndate: 2024-01-01\n---\nbody")
    for rel in ("a.md", "b.md", "c.md", "d.md"):
        with pytest.raises(ValidationError):
            repo.read(rel)


def test_read_propagates_parse_errors(tmp_path):
    repo = make_repo(tmp_path)
    write(repo, "plain.md", "# No front matter")
    write(repo, "broken.md", "---\ntitle: [oops\n---\nbody")
    with pytest.raises(MalformedFrontMatter):
        repo.read("plain.md")
    with pytest.raises(InvalidMetadata) as excinfo:
        repo.read("broken.md")
    assert excinfo.value.path == "broken.md"


def test_read_normalizes_schema_values(tmp_path):
    repo = make_repo(tmp_path)
    write(repo, "posts/typed.md", "---\ntitle: 2024\ndate: 2024-05-06\nextra: 1\n---\nbody")
    article = repo.read("posts/typed.md")
    assert article.title == "2024"
    assert article.date == datetime(2024, 5, 6)
    assert article.extra == {"extra": 1}


def test_coerce_datetime():
    assert coerce_datetime(datetime(2024, 1, 2, 3, 4)) == datetime(2024, 1, 2, 3, 4)
    assert coerce_datetime(date(2024, 1, 2)) == datetime(2024, 1, 2)
    assert coerce_datetime("2024-01-02T03:04:05") == datetime(2024, 1, 2, 3, 4, 5)
    assert coerce_datetime("2024-01-02T03:04:05Z").utcoffset().total_seconds() == 0
    with pytest.raises(ValidationError):
        coerce_datetime(12345)


@pytest.mark.parametrize("bad", ["../outside.md", "/etc/passwd", "posts/../../x.md"])
def test_paths_cannot_escape_content(tmp_path, bad):
    repo = make_repo(tmp_path)
    (tmp_path / "outside.md").write_text("---\ntitle: x\ndate: 2024-01-01\n---\n", encoding="utf-8")
    with pytest.raises(PathTraversalError):
        repo.read(bad)
    with pytest.raises(PathTraversalError):
        repo.write_text(bad, "x")
    with pytest.raises(PathTraversalError):
        repo.save(Article(title="Escape", date=datetime(2024, 1, 1)), bad)
    assert (tmp_path / "outside.md").exists()


def test_raw_text_helpers(tmp_path):
    repo = make_repo(tmp_path)
    repo.write_text("deep/nested/file.txt", "hello")
    assert repo.read_text("deep/nested/file.txt") == "hello"
    assert repo.list_files() == ["deep/nested/file.txt"]
    with pytest.raises(NotFoundError):
        repo.read_text("deep")


def test_list_files_without_content_dir(tmp_path):
    with pytest.raises(NotFoundError):
        ArticleRepository(tmp_path).list_files()
