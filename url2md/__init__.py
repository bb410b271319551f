"""Export web pages to Markdown with locally downloaded images."""
