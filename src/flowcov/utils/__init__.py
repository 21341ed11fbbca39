"""Collaborator utilities: GitHub API, CI context, subprocess execution."""
