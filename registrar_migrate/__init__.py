"""Bulk migration of domains from GoDaddy to Cloudflare."""

__version__ = "1.0.0"
