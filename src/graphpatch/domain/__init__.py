"""Domain layer: documents, schemas and the patch engine."""
