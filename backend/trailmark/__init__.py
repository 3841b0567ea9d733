"""Trailmark: assignment and submission tracking backend."""
