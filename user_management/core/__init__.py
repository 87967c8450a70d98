"""Core utilities for the user management service."""
