"""docqa - retrieval-augmented question answering over documents and web pages."""

__version__ = "0.1.0"
