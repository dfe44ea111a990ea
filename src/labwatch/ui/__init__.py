"""
HTTP API for reporting agents and the admin dashboard.
"""

__all__ = ["device_api", "http_server"]
