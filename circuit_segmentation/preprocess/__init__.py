"""
Image reception and preprocessing.
"""
