"""HTTP API for Scheduled Research."""
