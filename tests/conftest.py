from pathlib import Path

import pytest

TEMPLATES = {
    "base.html": "<title>{{ title }}</title>{% block content %}{% endblock %}\n",
    "nav.html": "<nav>{% for crumb in path %}<a href=\"/{{ crumb.link }}\">{{ crumb.name }}</a>{% endfor %}</nav>",
    "index.html": "{% extends \"base\" %}{% block content %}<main>{{ contents }}</main>{% endblock %}",
    "page.html": "{% extends \"base\" %}{% block content %}{% include \"nav\" %}<article>{{ contents }}</article>{% endblock %}",
    "post.html": "{% extends \"base\" %}{% block content %}{% include \"nav\" %}<article class=\"post\">{{ contents }}</article>{% endblock %}",
    "posts.html": (
        "{% extends \"base\" %}{% block content %}{% include \"nav\" %}<ul>"
        "{% for entity in entities %}"
        "<li data-date=\"{{ entity.created_at_iso }}\"><a href=\"{{ entity.filename }}\">{{ entity.title }}</a>"
        " {{ entity.created_at }}</li>"
        "{% endfor %}</ul>{% endblock %}"
    ),
}


def post(title: str, day: str | None = None, extra: str = "") -> str:
    """Return Markdown for a collection member with an optional date."""
    meta = ""
    if day is not None or extra:
        lines = [f"date = {day}"] if day is not None else []
        if extra:
            lines.append(extra)
        meta = "<!--metadata\n" + "\n".join(lines) + "\n-->\n\n"
    return f"{meta}# {title}\n\nBody of {title}.\n"


def create_site(root: Path) -> Path:
    """Write a small input tree with pages, one collection and assets."""
    (root / "templates").mkdir(parents=True)
    for name, source in TEMPLATES.items():
        (root / "templates" / name).write_text(source, encoding="utf-8")

    (root / "index.md").write_text("# Home\n\nWelcome.\n", encoding="utf-8")
    (root / "README.md").write_text("# Readme\n", encoding="utf-8")
    (root / "about.md").write_text("# About\n\nAbout us.\n", encoding="utf-8")

    posts = root / "posts"
    posts.mkdir()
    (posts / "a.md").write_text(post("Alpha", "2023-01-01"), encoding="utf-8")
    (posts / "b.md").write_text(post("Bravo", "2023-06-01"), encoding="utf-8")
    (posts / "c.md").write_text(post("Charlie", "2022-12-31"), encoding="utf-8")
    (posts / "notes.txt").write_text("not markdown", encoding="utf-8")

    (root / "assets" / "css").mkdir(parents=True)
    (root / "assets" / "css" / "site.css").write_text("body { margin: 0; }\n", encoding="utf-8")
    (root / "assets" / "logo.bin").write_bytes(b"\x89PNG\r\n\x00\xff")
    return root


@pytest.fixture
def site(tmp_path) -> Path:
    return create_site(tmp_path / "site")
