# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core infrastructure for ksub.

This module collects the foundational helpers used across the ksub codebase:
configuration, error types, structured logging, the shared init-container
bootstrap, and small utilities for dependency locators and memory strings.
"""
