"""
Presentation layer: the bridge's HTTP API.
"""
