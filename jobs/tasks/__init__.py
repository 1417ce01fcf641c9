"""Dramatiq task modules."""
