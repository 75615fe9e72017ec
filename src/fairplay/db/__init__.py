"""DuckDB persistence layer."""
