"""Main entry point for running the MCP server."""

from .server import run

if __name__ == "__main__":
    run()
