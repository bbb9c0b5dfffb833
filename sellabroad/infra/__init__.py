"""
sellabroad.infra

Cross-cutting plumbing: money rounding, configuration, logging.
Importing this package has no side effects.
"""
