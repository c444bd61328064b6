"""Core domain: models, codec, search DSL, ports, metadata store and bridge."""
