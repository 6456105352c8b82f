"""
Small helpers shared across layers: path handling and display formatting.
"""
