"""Cross-cutting services: configuration, logging, security and wiring."""
