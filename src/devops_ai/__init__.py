"""Learning-topic tutor backend: topic catalog, step progress and chat history."""

__version__ = "0.1.0"
