"""Global constants for the library server.

This module defines constants used throughout the application to avoid
hardcoded strings and make the codebase more maintainable.
"""

# Event bus topic published after a book is created
BOOK_ADDED = "BOOK_ADDED"

# Shared login password used when no LIBRARY_SERVER_LOGIN_PASSWORD_HASH is configured
REFERENCE_LOGIN_PASSWORD = "secret"

# Credential scheme accepted in the Authorization header and connection_init payload
BEARER_PREFIX = "Bearer "

GRAPHQL_PATH = "/graphql"
