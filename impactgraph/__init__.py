"""
impactgraph - change-impact analysis for JavaScript/TypeScript code bases

Extracts import/export relationships, resolves specifiers to files on disk,
builds a file-level dependency graph and answers "what does this change touch"
queries against it.
"""

__version__ = "0.1.0"
