"""Application layer: cached catalogue services and runtime wiring."""
