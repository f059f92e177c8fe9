"""Domain models and value types.

Plain data only: nothing here knows about HTTP, subprocesses or the CLI.
"""
