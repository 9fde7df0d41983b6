import shutil
from datetime import date
from pathlib import Path, PurePosixPath

import pytest

from quire.build import (
    BuildState,
    SiteBuilder,
    build_site,
    classify_input,
    load_config,
)
from quire.errors import (
    CollectionBuildError,
    InputMissingError,
    OutputIsFileError,
    ReadError,
    RenderError,
    TemplateNotFoundError,
)


def snapshot(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()
    }


def test_build_site_writes_everything(site, tmp_path):
    out = tmp_path / "out"
    result = build_site(site, out)

    assert result.output_dir == out
    assert result.pages == ["index.html", "about.html"]
    assert [s.filename for s in result.collections["posts"]] == ["b.html", "a.html", "c.html"]
    assert result.assets == [PurePosixPath("css/site.css"), PurePosixPath("logo.bin")]
    assert not result.cancelled

    assert sorted(snapshot(out)) == [
        "about.html",
        "assets/css/site.css",
        "assets/logo.bin",
        "index.html",
        "posts/a.html",
        "posts/b.html",
        "posts/c.html",
        "posts/index.html",
    ]
    assert (out / "index.html").read_text(encoding="utf-8") == (
        "<title>Home</title><main><h1>Home</h1>\n<p>Welcome.</p>\n</main>\n"
    )
    about = (out / "about.html").read_text(encoding="utf-8")
    assert '<nav><a href="/about.html">About</a></nav>' in about
    post = (out / "posts" / "a.html").read_text(encoding="utf-8")
    assert '<a href="/posts">Posts</a><a href="/posts/a.html">Jan 01, 2023</a>' in post
    assert '<article class="post">' in post
    assert (out / "assets" / "logo.bin").read_bytes() == b"\x89PNG\r\n\x00\xff"


def test_collection_index_lists_newest_first(site, tmp_path):
    out = tmp_path / "out"
    build_site(site, out)
    index = (out / "posts" / "index.html").read_text(encoding="utf-8")
    assert "<title>Posts</title>" in index
    assert index.index("Bravo") < index.index("Alpha") < index.index("Charlie")
    assert "Jun 01, 2023" in index


def test_build_is_reproducible(site, tmp_path):
    out = tmp_path / "out"
    build_site(site, out, today=date(2024, 1, 1))
    first = snapshot(out)
    build_site(site, out, today=date(2024, 1, 1))
    assert snapshot(out) == first


def test_rebuild_preserves_reserved_and_drops_stale(site, tmp_path):
    out = tmp_path / "out"
    (out / ".git").mkdir(parents=True)
    (out / ".git" / "HEAD").write_text("ref\n", encoding="utf-8")
    (out / "CNAME").write_text("example.com\n", encoding="utf-8")
    (out / "old.html").write_text("stale", encoding="utf-8")

    build_site(site, out)

    assert (out / ".git" / "HEAD").read_text(encoding="utf-8") == "ref\n"
    assert (out / "CNAME").read_text(encoding="utf-8") == "example.com\n"
    assert not (out / "old.html").exists()
    assert (out / "index.html").exists()


def test_missing_input(tmp_path):
    builder = SiteBuilder(tmp_path / "nope", tmp_path / "out")
    with pytest.raises(InputMissingError):
        builder.build()
    assert builder.state is BuildState.FAILED
    assert not (tmp_path / "out").exists()


def test_output_is_a_file(site, tmp_path):
    out = tmp_path / "out"
    out.write_text("file", encoding="utf-8")
    with pytest.raises(OutputIsFileError):
        build_site(site, out)
    assert out.read_text(encoding="utf-8") == "file"


def test_declined_confirmation_cancels(site, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    (out / "keep.html").write_text("mine", encoding="utf-8")

    builder = SiteBuilder(site, out, confirm=lambda path: False)
    result = builder.build()

    assert result.cancelled
    assert builder.state is BuildState.DONE
    assert sorted(p.name for p in out.iterdir()) == ["keep.html"]


def test_accepted_confirmation_builds(site, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    (out / "keep.html").write_text("mine", encoding="utf-8")

    result = build_site(site, out, confirm=lambda path: True)
    assert not result.cancelled
    assert not (out / "keep.html").exists()


def test_builder_state_after_success(site, tmp_path):
    builder = SiteBuilder(site, tmp_path / "out")
    assert builder.state is BuildState.IDLE
    builder.build()
    assert builder.state is BuildState.DONE


def test_page_specific_template(site, tmp_path):
    (site / "templates" / "about.html").write_text("special {{ title }}", encoding="utf-8")
    out = tmp_path / "out"
    build_site(site, out)
    assert (out / "about.html").read_text(encoding="utf-8") == "special About"


def test_missing_entity_template_fails_build(site, tmp_path):
    (site / "templates" / "post.html").unlink()
    with pytest.raises(CollectionBuildError) as info:
        build_site(site, tmp_path / "out")
    assert isinstance(info.value.__cause__, TemplateNotFoundError)


def test_missing_index_fails_build(site, tmp_path):
    (site / "index.md").unlink()
    with pytest.raises(ReadError) as info:
        build_site(site, tmp_path / "out")
    assert info.value.source_path == site / "index.md"


def test_missing_templates_dir_fails_before_rendering(site, tmp_path):
    for template in (site / "templates").iterdir():
        template.unlink()
    (site / "templates").rmdir()
    out = tmp_path / "out"
    with pytest.raises(ReadError):
        build_site(site, out)
    assert list(out.iterdir()) == []


def test_classify_input(site, tmp_path):
    (site / ".git").mkdir()
    (site / "drafts").mkdir()
    layout = classify_input(site)
    assert layout.pages == ["about.md"]
    assert layout.collections == ["drafts", "posts"]
    assert layout.assets == [PurePosixPath("css/site.css"), PurePosixPath("logo.bin")]


def test_output_inside_input_is_not_a_collection(site):
    out = site / "public"
    result = build_site(site, out)
    assert "public" not in result.collections
    assert (out / "index.html").exists()
    # A second build must not pick up the first one's output.
    result = build_site(site, out)
    assert list(result.collections) == ["posts"]


def test_no_assets_directory(site, tmp_path):
    shutil.rmtree(site / "assets")
    out = tmp_path / "out"
    result = build_site(site, out)
    assert result.assets == []
    assert (out / "assets").is_dir()


def test_load_config(tmp_path):
    assert load_config(tmp_path) == {"port": 3030, "ws_port": None, "debounce_ms": 250}
    (tmp_path / "quire.yaml").write_text("port: 4000\ndebounce_ms: 100\n", encoding="utf-8")
    config = load_config(tmp_path)
    assert config["port"] == 4000
    assert config["debounce_ms"] == 100
    assert config["ws_port"] is None


def test_editor_backup_template_does_not_replace_page(site, tmp_path):
    (site / "templates" / "page.html~").write_text("STALE {{ title }}", encoding="utf-8")
    (site / "templates" / ".DS_Store").write_bytes(b"\x00\xff")
    out = tmp_path / "out"
    build_site(site, out)
    about = (out / "about.html").read_text(encoding="utf-8")
    assert "STALE" not in about
    assert "<article><h1>About</h1>" in about


def test_failing_page_lets_started_copies_finish(site, tmp_path):
    (site / "templates" / "broken.html").write_text("{{ author }}", encoding="utf-8")
    (site / "broken.md").write_text("# Broken\n", encoding="utf-8")
    out = tmp_path / "out"

    with pytest.raises(RenderError) as info:
        build_site(site, out)

    assert info.value.source_path == site / "broken.md"
    assert info.value.template_name == "broken"
    assert not (out / "broken.html").exists()
    # Asset copies were already running when the page failed.
    assert (out / "assets" / "css" / "site.css").read_text(encoding="utf-8") == "body { margin: 0; }\n"
    assert (out / "assets" / "logo.bin").read_bytes() == b"\x89PNG\r\n\x00\xff"
    assert not [p for p in out.rglob("*.tmp")]
