"""
Blogger MCP Tools

Modules:
  blogger_tools  — 12 blog / post / label tools bound to a BloggerService
"""

from blogger_mcp.tools.blogger_tools import build_operations

__all__ = ["build_operations"]
