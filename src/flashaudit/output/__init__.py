"""Report renderers — terminal, JSON, SARIF."""
