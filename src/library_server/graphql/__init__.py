"""GraphQL API for the library catalog."""
