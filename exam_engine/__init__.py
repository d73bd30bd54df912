"""Timed exam attempts with deterministic auto-grading."""
