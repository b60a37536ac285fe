"""
course-rag: retrieval-augmented question answering over a small, versioned
corpus of course documents.
"""

__version__ = "1.0.0"
