"""Planning core: knowledge base, parsing, resolution, scheduling and workflow wiring."""
