"""MCP server that forwards a fixed set of MongoDB operations over stdio."""

__version__ = "0.1.1"
