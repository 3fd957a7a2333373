"""suggestions — Missing-connection and pathway hints for learners."""

from .suggest import (
    ConnectionSuggestion,
    PathwaySuggestion,
    connection_reason,
    recommend_connections,
    suggest_pathways,
)
