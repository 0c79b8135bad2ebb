"""Pipeline services for chaptergen."""
