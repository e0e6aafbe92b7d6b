"""
Core schemas, configuration, logging, metrics and pipeline orchestration.
"""
