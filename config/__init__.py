"""
Configuration package for the Imposter game server.

All values are read from the environment (and a local .env file) in settings.py.
"""
