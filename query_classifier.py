"""
GraphQL operation classification and mutation gating

Documents are parsed with graphql-core; nothing is validated against a
schema. The gate trusts the declared operation kind.
"""

import logging
from enum import Enum

from graphql import GraphQLError, OperationDefinitionNode, OperationType, parse

logger = logging.getLogger(__name__)

MUTATIONS_NOT_ALLOWED_MESSAGE = (
    "Mutations are not allowed unless you enable them in the configuration. "
    "Please use a query operation instead."
)


class OperationKind(str, Enum):
    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"
    OTHER = "other"


class QuerySyntaxError(ValueError):
    """Raised when a query string cannot be parsed"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid GraphQL query: {detail}")


class MutationNotAllowedError(ValueError):
    """Raised when a mutation arrives while mutations are disabled"""

    def __init__(self):
        super().__init__(MUTATIONS_NOT_ALLOWED_MESSAGE)


_OPERATION_KINDS = {
    OperationType.QUERY: OperationKind.QUERY,
    OperationType.MUTATION: OperationKind.MUTATION,
    OperationType.SUBSCRIPTION: OperationKind.SUBSCRIPTION,
}


def classify(query: str) -> OperationKind:
    """
    Determine the operation kind of a GraphQL document.

    Any mutation definition makes the whole document a mutation; otherwise
    the first operation decides. Fragment-only documents are OTHER.

    Raises:
        QuerySyntaxError: If the document does not parse
    """
    try:
        document = parse(query)
    except GraphQLError as e:
        raise QuerySyntaxError(e.message) from e

    operations = [
        definition for definition in document.definitions
        if isinstance(definition, OperationDefinitionNode)
    ]
    if not operations:
        return OperationKind.OTHER

    if any(op.operation == OperationType.MUTATION for op in operations):
        return OperationKind.MUTATION

    return _OPERATION_KINDS.get(operations[0].operation, OperationKind.OTHER)


def check_query(query: str, allow_mutations: bool) -> OperationKind:
    """
    Classify a query and apply the mutation gate.

    Raises:
        QuerySyntaxError: If the document does not parse
        MutationNotAllowedError: If it is a mutation and mutations are disabled
    """
    kind = classify(query)
    if kind is OperationKind.MUTATION and not allow_mutations:
        logger.info("Rejected mutation because mutations are disabled")
        raise MutationNotAllowedError()
    return kind
