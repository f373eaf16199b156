"""Translation of service errors and input validation into GraphQL errors."""

from typing import Any, TypeVar

from graphql import GraphQLError
from pydantic import BaseModel, ValidationError
from strawberry.utils.str_converters import to_camel_case

from library_server.exceptions import LibraryError, ValidationFailedError

M = TypeVar("M", bound=BaseModel)


def to_graphql_error(error: LibraryError) -> GraphQLError:
    """Build the GraphQL error reported for a service error.

    The error's ``code`` and any extra details go into ``extensions``.
    """
    return GraphQLError(error.message, original_error=error, extensions={"code": error.code, **error.extensions})


def parse_input(model: type[M], **arguments: Any) -> M:
    """Validate resolver arguments against an input model.

    Raises:
        ValidationFailedError: Listing the offending arguments by their GraphQL names
    """
    try:
        return model(**arguments)
    except ValidationError as e:
        invalid_args = sorted({to_camel_case(str(err["loc"][0])) for err in e.errors() if err["loc"]})
        details = "; ".join(f"{to_camel_case(str(err['loc'][0]))}: {err['msg']}" for err in e.errors() if err["loc"])
        raise ValidationFailedError(f"Invalid input: {details}", invalid_args=invalid_args) from e
