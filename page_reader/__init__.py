"""
Page reader package.

Turns extracted web page content into token-bounded chunks, stores them
with embeddings, and serves consolidated similarity search results.
"""

__version__ = "0.1.0"
