"""Quizmeme - quiz-show meme images over HTTP."""

__version__ = "0.1.0"
