"""Tenable Vulnerability Management user, role and group client."""

__version__ = "0.1.0"
