"""Keshav attendance package.

Organized by feature modules (scope, members, projects, attendance, ...)
with a thin Flask controller layer over service/repository layers.
"""
