"""Core domain logic: chunking, consolidation, similarity search."""
