"""
Vision primitives behind a swappable backend interface.
"""
