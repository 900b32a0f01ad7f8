"""Zoom adapter."""

from mcp_integrations.zoom.adapter import ZoomAdapter

__all__ = ["ZoomAdapter"]
