"""SailMCP command-line interface."""
