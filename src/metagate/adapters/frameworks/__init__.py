"""HTTP framework adapters exposing the query endpoint."""
