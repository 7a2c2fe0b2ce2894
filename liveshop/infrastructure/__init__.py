"""Infrastructure adapters: database, Mux, security and observability."""
