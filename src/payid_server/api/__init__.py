"""Private management API."""
