#: types accepted wherever raw secret bytes are expected
BYTES_TYPES = (bytes, bytearray, memoryview)
