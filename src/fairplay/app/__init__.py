"""Application layer: use cases, job registry and wiring."""
