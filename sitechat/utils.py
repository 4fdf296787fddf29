import re
import time
from datetime import datetime
from typing import Dict, Iterable, List

PREVIEW_PLACEHOLDER = "{PREVIEW_CONTENT}"

EMPTY_PREVIEW = """<div class="empty-state">
        <p>Your site preview will appear here as we build it together.</p>
      </div>"""

PREVIEW_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Preview</title>
    <link rel="stylesheet" href="styles.css" />
  </head>
  <body>
    <div id="preview-content">
      {PREVIEW_CONTENT}
    </div>
  </body>
</html>
"""

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def now_iso() -> str:
    return datetime.now().isoformat()


def freshness_token() -> str:
    """Millisecond token appended to artifact URLs to defeat caching."""
    return str(time.time_ns() // 1_000_000)


def is_valid_session_id(session_id: str) -> bool:
    return bool(session_id) and bool(_SESSION_ID_RE.match(session_id))


def slugify(name: str) -> str:
    """Lower-case the name and replace whitespace runs with hyphens."""
    return re.sub(r"\s+", "-", name.strip().lower())


def build_pages(names: Iterable[str]) -> List[dict]:
    """Ordered pages with slugs. Repeated slugs keep their first position."""
    pages = []
    seen = set()
    for name in names:
        name = name.strip()
        slug = slugify(name)
        if not slug or slug in seen:
            continue
        seen.add(slug)
        pages.append({"name": name, "slug": slug, "order": len(pages) + 1})
    return pages


def render_preview_page(section_html: str | None = None) -> str:
    """Render the live artifact with one section, or the empty state"""
    content = section_html if section_html else EMPTY_PREVIEW
    return PREVIEW_TEMPLATE.replace(PREVIEW_PLACEHOLDER, content)


def css_variable_name(key: str) -> str:
    """`primaryColor` -> `--primary-color`, `font heading` -> `--font-heading`"""
    name = re.sub(r"(?<=[a-z0-9])([A-Z])", r"-\1", key.strip())
    name = re.sub(r"[\s_]+", "-", name).lower()
    return f"--{name}"


def styles_to_css(styles: Dict[str, str]) -> str:
    lines = [":root {"]
    for key, value in styles.items():
        # A value may not close the declaration early.
        safe_value = value.replace(";", "").replace("}", "")
        lines.append(f"  {css_variable_name(key)}: {safe_value};")
    lines.append("}")
    return "\n".join(lines) + "\n"


def add_freshness(url: str, token: str | None = None) -> str:
    base = url.split("?")[0]
    return f"{base}?t={token or freshness_token()}"
