"""
Core layer: interfaces and exceptions shared by every other layer.
"""
