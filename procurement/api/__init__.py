"""HTTP API for the procurement platform."""
