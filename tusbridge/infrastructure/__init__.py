"""
Infrastructure layer: configuration, logging and the tus helper services.
"""
