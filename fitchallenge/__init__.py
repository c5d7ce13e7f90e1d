"""Fitness challenge ranking and reward finalization backend."""
