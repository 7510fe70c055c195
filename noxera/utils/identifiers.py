"""
Identifier helpers
"""

import uuid


def generate_id() -> str:
    """
    Generate a random record identifier.

    Random (not sequential) so that ids from one tenant say nothing about
    the ids of another.
    """
    return str(uuid.uuid4())
