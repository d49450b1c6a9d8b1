"""Process-level configuration: settings and the logging preset."""
