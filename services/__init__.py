"""Service layer: expense store, query engine and analytics."""
