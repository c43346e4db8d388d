from folio.renderers import MarkdownRenderer, _generate_heading_id, render_markdown


def test_heading_gets_anchor_id():
    assert render_markdown("# Hi") == '<h1 id="hi">Hi</h1>\n'


def test_heading_ids_strip_markup_and_punctuation():
    html = render_markdown("## Hello *World*, again!")
    assert '<h2 id="hello-world-again">Hello <em>World</em>, again!</h2>' in html
    assert _generate_heading_id("What's   new?") == "whats-new"
    assert _generate_heading_id("!!!") == ""


def test_duplicate_headings_are_numbered():
    html = render_markdown("## Setup\n\ntext\n\n## Setup\n\n## Setup")
    assert 'id="setup"' in html
    assert 'id="setup-1"' in html
    assert 'id="setup-2"' in html


def test_heading_ids_ignore_escaped_entities():
    assert render_markdown("# Tom & Jerry") == '<h1 id="tom-jerry">Tom &amp; Jerry</h1>\n'
    assert 'id="say-hi"' in render_markdown('## Say "hi"')
    assert 'id="a-b"' in render_markdown("## a < b")


def test_generated_suffix_never_collides_with_later_heading():
    html = render_markdown("# a\n\n# a\n\n# a-1")
    assert html.count('id="a-1"') == 1
    assert 'id="a"' in html
    assert 'id="a-1-1"' in html


def test_heading_ids_reset_between_documents():
    renderer = MarkdownRenderer()
    first = renderer.render("# Intro")
    second = renderer.render("# Intro")
    assert first == second == '<h1 id="intro">Intro</h1>\n'


def test_punctuation_only_heading_gets_fallback_id():
    assert 'id="section"' in render_markdown("# ???")


def test_common_extensions():
    html = render_markdown(
        "~~gone~~ and https://example.com\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\nNote[^1]\n\n[^1]: Footnote text"
    )
    assert "<del>gone</del>" in html
    assert '<a href="https://example.com">' in html
    assert "<table>" in html
    assert "Footnote text" in html


def test_raw_html_passes_through():
    html = render_markdown('<div class="hero"><span>HTML stays</span></div>\n')
    assert '<div class="hero"><span>HTML stays</span></div>' in html


def test_code_blocks_are_highlighted():
    html = render_markdown("```python\nprint('hi')\n```")
    assert 'class="highlight"' in html

    plain = render_markdown("```not-a-language\n<b>x</b>\n```")
    assert '<pre><code class="language-not-a-language">&lt;b&gt;x&lt;/b&gt;' in plain

    bare = render_markdown("```\na < b\n```")
    assert "<pre><code>a &lt; b" in bare


def test_rendering_never_rejects_input():
    assert isinstance(render_markdown(""), str)
    assert isinstance(render_markdown("* [unclosed](\n> > >\n```"), str)
