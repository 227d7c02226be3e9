"""Clients for third-party services.

Sub-modules:
- ``cloudflare`` - DNS record management through the Cloudflare v4 API
"""
