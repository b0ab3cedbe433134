"""Markdown rendering helpers for the web views of the trivia service."""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

from trivia_app.core.models import ScoreRow


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts markdown into HTML fragments or full documents."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""

        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_full_document(self, markdown_text: str, title: str = "Trivia") -> str:
        fragment = self.render_fragment(markdown_text)
        return f"""<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>{title}</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <style>
      body {{ font-family: 'Segoe UI', system-ui, sans-serif; margin: 0; padding: 1.5rem; background: #0b1120; color: #f5f7ff; }}
      table {{ border-collapse: collapse; min-width: 20rem; }}
      th, td {{ padding: 0.4rem 0.8rem; border-bottom: 1px solid #1f2a44; text-align: left; }}
    </style>
  </head>
  <body>
    {fragment}
  </body>
</html>"""


def score_table_markdown(title: str, rows: list[ScoreRow]) -> str:
    """Build a ranked markdown table, escaping pipes in identities."""
    lines = [f"# {title}", ""]
    if not rows:
        lines.append("_No scores yet._")
        return "\n".join(lines)
    lines.append("| # | Name | Points |")
    lines.append("|---|------|--------|")
    for rank, row in enumerate(rows, start=1):
        name = row.identity.replace("|", "\\|")
        lines.append(f"| {rank} | {name} | {row.points} |")
    return "\n".join(lines)


renderer = MarkdownRenderer()
