"""Relay server that forwards engine transforms to viewer clients."""
