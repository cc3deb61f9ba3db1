"""Process entry surfaces (web, CLI)."""
