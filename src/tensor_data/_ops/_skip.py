import aioitertools


class _SkipIterator:
    def __init__(self, source_iter, count):
        self._source_iter = source_iter
        self._count = count

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._source_iter is None:
            raise StopAsyncIteration()

        try:
            while self._count != 0:
                await aioitertools.next(self._source_iter)
                if self._count > 0:
                    self._count -= 1

            return await aioitertools.next(self._source_iter)
        except StopAsyncIteration:
            self._source_iter = None
            raise


class SkipDataOperation:
    def __init__(self, *, source, count):
        self._source = source
        self._count = count

    def get_iter(self, session_id):
        return _SkipIterator(self._source.get_iter(session_id), self._count)
