"""
Resolution of nodeset/ref path references against a base path.
"""


def resolve_path(raw: str, base_path: str) -> str:
    """
    Resolve a raw path reference against base_path.

    Supported forms:
        /a/b    absolute, returned unchanged
        ../x    one level up from base_path
        ./x     same level (same as a bare name)
        .       base_path itself
        x       child of base_path

    Only a single "../" level is understood. "../../x" climbs one level
    and keeps the remaining "../x" verbatim.
    """
    if raw.startswith('/'):
        return raw

    if raw.startswith('../'):
        return base_path[:base_path.rfind('/')] + raw[2:]

    if raw.startswith('./'):
        raw = raw[2:]

    if raw == '.':
        return base_path

    return base_path + '/' + raw
