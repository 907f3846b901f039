"""Random identifiers for nodes, files, tags and statuses."""

import uuid


def new_id() -> str:
    return str(uuid.uuid4())
