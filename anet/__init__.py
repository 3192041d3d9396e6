"""ANet VPN toolkit: identities, access control, client configuration, DNS and routes."""

__version__ = "0.1.0"