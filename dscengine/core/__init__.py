"""
Core engine and token models
"""
