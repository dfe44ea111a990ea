"""
labctl operational CLI.
"""
