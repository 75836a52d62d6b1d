"""MCP tool catalog, split by domain.

Each module exposes ``register() -> (tools, handlers)``; ``mcp_server``
assembles them into one catalog and dispatches by name.
"""
