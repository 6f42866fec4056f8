"""HTML export of markdown scan summaries.

Converts the markdown summary into a standalone styled HTML page that CI
systems can publish as a build artifact.
"""

import markdown


def render_html(markdown_content: str, title: str = "Security Scan Report") -> str:
    """Convert a markdown summary into a complete HTML document.

    Args:
        markdown_content: Markdown summary string
        title: Document title

    Returns:
        HTML document string
    """
    html_body = markdown.markdown(
        markdown_content,
        extensions=["tables", "fenced_code", "toc"],
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
            line-height: 1.6;
            max-width: 1000px;
            margin: 0 auto;
            padding: 20px;
            color: #333;
            background-color: #f5f5f5;
        }}

        h1 {{
            border-bottom: 3px solid #3498db;
            padding-bottom: 10px;
        }}

        h2 {{
            border-bottom: 2px solid #95a5a6;
            padding-bottom: 8px;
        }}

        table {{
            border-collapse: collapse;
            width: 100%;
            margin: 20px 0;
            background-color: white;
        }}

        th, td {{
            border: 1px solid #ddd;
            padding: 8px 12px;
            text-align: left;
        }}

        th {{
            background-color: #3498db;
            color: white;
        }}

        code {{
            background-color: #f4f4f4;
            border: 1px solid #ddd;
            border-radius: 3px;
            padding: 2px 6px;
            font-family: "Courier New", monospace;
            font-size: 0.9em;
        }}
    </style>
</head>
<body>
{html_body}
</body>
</html>
"""


def export_html(markdown_content: str, output_path: str, title: str = "Security Scan Report") -> str:
    """Write a markdown summary to ``output_path`` as styled HTML.

    Returns:
        Path to the written HTML file

    Example:
        >>> summary = SummaryRenderer().render(report)
        >>> export_html(summary, "/tmp/scan.html")
        '/tmp/scan.html'
    """
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(render_html(markdown_content, title=title))
    return output_path
