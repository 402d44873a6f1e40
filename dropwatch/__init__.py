"""dropwatch: live viewer for firewall drop events."""

__version__ = "0.1.0"
