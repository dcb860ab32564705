#!/usr/bin/env python3

"""Access to the PostgreSQL server.

This provides the python code encapsulating our :py:mod:`psycopg2` usage.
"""
