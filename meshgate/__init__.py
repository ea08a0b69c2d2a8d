"""GraphQL syntax tree, document formatting, boundary lookups and response merging for a federated gateway."""

__version__ = "0.1.0"

__all__ = ["boundary", "execution_result", "format", "graphql_ast", "selection"]