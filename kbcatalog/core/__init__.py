"""Settings, logging and exceptions shared across the catalog."""
