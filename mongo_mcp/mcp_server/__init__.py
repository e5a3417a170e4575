"""MCP server package: FastMCP registration, dispatcher and store gateway."""
