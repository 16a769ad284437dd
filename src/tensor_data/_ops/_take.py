import aioitertools


class _TakeIterator:
    def __init__(self, source_iter, count):
        self._source_iter = source_iter
        self._count = count

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._source_iter is None or self._count == 0:
            self._source_iter = None
            raise StopAsyncIteration()

        try:
            sample = await aioitertools.next(self._source_iter)
        except StopAsyncIteration:
            self._source_iter = None
            raise

        if self._count > 0:
            self._count -= 1
        return sample


class TakeDataOperation:
    def __init__(self, *, source, count):
        self._source = source
        self._count = count

    def get_iter(self, session_id):
        return _TakeIterator(self._source.get_iter(session_id), self._count)
