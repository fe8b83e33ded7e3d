"""HTTP surface of the portal service."""
