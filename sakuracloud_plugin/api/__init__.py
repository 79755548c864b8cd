"""Host-facing endpoints."""
