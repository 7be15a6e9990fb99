"""IMAP wire-format building blocks: sequence sets, modified UTF-7, field writing, status responses and search criteria."""

__version__ = "0.1.0"

__all__ = ["search", "seqset", "status", "utf7", "writer"]