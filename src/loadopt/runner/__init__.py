"""Job files, item generation and the command-line runner."""
