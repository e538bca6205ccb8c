"""ctxpack - project knowledge base and file tools over MCP."""

__version__ = "0.1.0"
