"""
Third-party messaging integrations.
"""
