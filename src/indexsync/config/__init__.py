"""Configuration — Settings loaded from YAML and INDEXSYNC_ environment variables."""
