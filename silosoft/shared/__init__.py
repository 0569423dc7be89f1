"""
Definitions shared by the engine and its hosts: enums, constants and card catalog.
"""
