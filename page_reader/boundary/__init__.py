"""Storage boundary: ORM models, connections and vector stores."""
