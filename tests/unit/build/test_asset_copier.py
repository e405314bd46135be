"""Unit tests for static asset and markup copying."""

from unittest.mock import patch

import pytest

from extbuild.build.asset_copier import AssetCopier, AssetCopyError


@pytest.fixture
def roots(tmp_path):
    src = tmp_path / "src"
    public = tmp_path / "public"
    out = tmp_path / "dist"
    src.mkdir()
    public.mkdir()
    return src, public, out


@pytest.fixture
def copier(roots):
    src, public, out = roots
    return AssetCopier(src, public, out, show_progress=False)


class TestDestination:
    """Test mapping sources into the output tree."""

    def test_static_keeps_structure(self, copier, roots):
        src, public, out = roots
        assert copier.destination_for(public / "icons" / "16.png") == out / "icons" / "16.png"

    def test_markup_relative_to_src(self, copier, roots):
        src, public, out = roots
        assert copier.destination_for(src / "popup" / "index.html") == out / "popup" / "index.html"

    def test_outside_roots(self, copier, roots, tmp_path):
        src, public, out = roots
        assert copier.destination_for(tmp_path / "other" / "notes.txt") == out / "notes.txt"


class TestCopyStatic:
    """Test verbatim copies."""

    def test_copy_static(self, copier, roots):
        src, public, out = roots
        source = public / "_locales" / "en" / "messages.json"
        source.parent.mkdir(parents=True)
        source.write_text('{"name": {"message": "Demo"}}')

        destination = copier.copy_static(source)

        assert destination == out / "_locales" / "en" / "messages.json"
        assert destination.read_text() == '{"name": {"message": "Demo"}}'

    def test_copy_static_binary(self, copier, roots):
        src, public, out = roots
        source = public / "logo.png"
        source.write_bytes(bytes(range(256)))

        assert copier.copy_static(source).read_bytes() == bytes(range(256))

    def test_copy_static_missing(self, copier, roots):
        src, public, out = roots
        with pytest.raises(AssetCopyError, match="Failed to copy"):
            copier.copy_static(public / "missing.png")

    def test_copy_static_many(self, copier, roots):
        src, public, out = roots
        sources = []
        for name in ["a.png", "b.png", "c.png"]:
            path = public / name
            path.write_bytes(b"x")
            sources.append(path)

        assert copier.copy_static_many(sources) == [out / "a.png", out / "b.png", out / "c.png"]

    def test_copy_static_many_progress_bar(self, roots):
        src, public, out = roots
        (public / "a.png").write_bytes(b"x")
        copier = AssetCopier(src, public, out, show_progress=True)

        with patch("extbuild.build.asset_copier.tqdm", side_effect=lambda items, **kwargs: items) as mock_tqdm:
            copier.copy_static_many([public / "a.png"])

        assert mock_tqdm.call_args.kwargs["desc"] == "Copying static assets"
        assert mock_tqdm.call_args.kwargs["disable"] is False


class TestRewriteMarkup:
    """Test reference rewriting."""

    def test_script_reference(self, copier, roots):
        src, public, out = roots
        content = '<script type="module" src="./index.tsx"></script>'
        assert copier.rewrite_markup(content, out / "popup" / "index.html") == (
            '<script type="module" src="./index.js"></script>'
        )

    def test_style_reference_points_at_compiled_css(self, copier, roots):
        src, public, out = roots
        content = "<link rel='stylesheet' href='../styles/popup.scss'>"
        assert copier.rewrite_markup(content, out / "popup" / "index.html") == (
            "<link rel='stylesheet' href='../popup.css'>"
        )

    def test_style_reference_at_root(self, copier, roots):
        src, public, out = roots
        content = '<link rel="stylesheet" href="styles/options.css">'
        assert copier.rewrite_markup(content, out / "options.html") == '<link rel="stylesheet" href="options.css">'

    def test_other_references_untouched(self, copier, roots):
        src, public, out = roots
        content = '<img src="icons/logo.png"><a href="options.html">Options</a>'
        assert copier.rewrite_markup(content, out / "popup.html") == content

    def test_remote_references_untouched(self, copier, roots):
        src, public, out = roots
        content = '<script src="https://cdn.example.com/lib.js"></script><script src="//cdn.example.com/x.js"></script>'
        assert copier.rewrite_markup(content, out / "popup.html") == content


class TestCopyMarkup:
    """Test markup copies."""

    def test_copy_markup(self, copier, roots):
        src, public, out = roots
        source = src / "popup" / "index.html"
        source.parent.mkdir()
        source.write_text('<html><script src="index.tsx"></script></html>')

        destination = copier.copy_markup(source)

        assert destination == out / "popup" / "index.html"
        assert destination.read_text() == '<html><script src="index.js"></script></html>'

    def test_copy_markup_missing(self, copier, roots):
        src, public, out = roots
        with pytest.raises(AssetCopyError):
            copier.copy_markup(src / "missing.html")

    def test_copy_markup_many(self, copier, roots):
        src, public, out = roots
        (src / "a.html").write_text("a")
        (src / "b.html").write_text("b")

        assert copier.copy_markup_many([src / "a.html", src / "b.html"]) == [out / "a.html", out / "b.html"]
