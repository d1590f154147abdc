"""Shared utilities for the command line tools."""
