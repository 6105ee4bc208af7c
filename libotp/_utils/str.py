_CHUNK_SIZES = (4, 6, 5)


def _get_group_size(klen: int) -> int:
    """
    helper for group_string() --
    calculates optimal size of group for given string size.
    """
    # look for exact divisor
    for size in _CHUNK_SIZES:
        if not klen % size:
            return size
    # fallback to divisor with largest remainder
    # (so chunks are as close to even as possible)
    best = _CHUNK_SIZES[0]
    rem = 0
    for size in _CHUNK_SIZES:
        if klen % size > rem:
            best = size
            rem = klen % size
    return best


def group_string(value: str, sep: str = "-") -> str:
    """
    reformat string into (roughly) evenly-sized groups, separated by **sep**.
    useful for making tokens & keys easier to read by humans.
    """
    klen = len(value)
    size = _get_group_size(klen)
    return sep.join(value[o : o + size] for o in range(0, klen, size))
