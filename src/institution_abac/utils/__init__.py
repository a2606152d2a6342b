"""Shared utilities for institution-abac."""
