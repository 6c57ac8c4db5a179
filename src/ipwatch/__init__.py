"""ipwatch - email an operator when the public IP address changes."""

__version__ = "0.1.0"
