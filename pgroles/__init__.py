#!/usr/bin/env python3

"""Administration of PostgreSQL roles.

This offers creation and removal of roles, management of memberships
between them and inspection of the resulting membership graph.
"""
