"""Marks ``tests`` as a package so nested suites import consistently."""
