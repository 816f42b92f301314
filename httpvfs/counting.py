import io

CHUNK_SIZE = 64 * 1024


class CountingReader(io.RawIOBase):
    """Pass-through reader remembering how many bytes went through it.

    Iterating yields fixed size chunks, which is how the HTTP layer consumes
    a streamed request body.
    """

    def __init__(self, source):
        self.source = source
        self.count = 0

    def readable(self):
        return True

    def readinto(self, b):
        data = self.source.read(len(b))
        if not data:
            return 0
        n = len(data)
        b[:n] = data
        self.count += n
        return n

    def __iter__(self):
        while True:
            chunk = self.read(CHUNK_SIZE)
            if not chunk:
                return
            yield chunk
