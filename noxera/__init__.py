### Description ###
# Noxera Plus - Church Operations Platform API
# - API Package -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Noxera Plus API Package

This package contains the FastAPI application implementing the
authorization and tenant-isolation core of the Noxera Plus church
operations platform.
"""

__version__ = "0.1.0"
