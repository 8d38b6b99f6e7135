"""Provisioning URIs and QR rendering."""
