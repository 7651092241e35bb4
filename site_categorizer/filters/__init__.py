"""Refinement stages applied to raw categorizations."""
