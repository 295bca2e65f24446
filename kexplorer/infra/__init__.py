"""Infrastructure adapters: subprocesses, configuration and console output."""
