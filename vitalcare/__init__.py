"""Vital-sign evaluation and reporting engine for home and hospital care.

This package contains the clinical decision logic and domain models,
isolated from persistence and delivery so it can be tested with in-memory fakes.
"""
