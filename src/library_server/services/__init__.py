"""Business services for the library catalog."""
