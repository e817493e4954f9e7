"""HTTP API for document issuing, history and lookups."""
