"""
Hallway service application.
"""
