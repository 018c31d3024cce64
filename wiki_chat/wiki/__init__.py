# wiki_chat/wiki/__init__.py
from .domains import WikiArticle, WikiCategory, RetrievedArticle, Interpretation, QueryClassification
from .repository import (
    WikiContentRepository,
    GraphQLWikiContentRepository,
    InMemoryWikiContentRepository,
)
from .classifier import QueryClassifier
from .retrieval import RetrievalService, create_context_string
from .container import create_wiki_container

__all__ = [
    "WikiArticle",
    "WikiCategory",
    "RetrievedArticle",
    "Interpretation",
    "QueryClassification",
    "WikiContentRepository",
    "GraphQLWikiContentRepository",
    "InMemoryWikiContentRepository",
    "QueryClassifier",
    "RetrievalService",
    "create_context_string",
    "create_wiki_container",
]
