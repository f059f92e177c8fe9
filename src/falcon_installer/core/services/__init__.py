"""Workflow services that sequence adapters into the install steps."""
