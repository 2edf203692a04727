"""
Permission resolution feature module.

Implements group- and policy-based access control with an admin override.
"""
