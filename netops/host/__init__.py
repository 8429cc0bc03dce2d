"""
netops.host package initializer.
Host collaborator interfaces and the in-memory world used for dry-runs.
"""
