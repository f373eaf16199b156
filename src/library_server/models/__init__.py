"""Table, base and API models for the library catalog."""
