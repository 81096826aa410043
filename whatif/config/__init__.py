"""Environment settings and process-level logging setup."""
