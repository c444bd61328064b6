"""Query engine adapters implementing QueryEnginePort."""
