"""Adapters to the outside world: Falcon API, AWS, package managers, falconctl."""
