import aioitertools


class _RepeatIterator:
    def __init__(self, session_id, source, count):
        self._session_id = session_id
        self._source = source
        self._count = count

        self._source_iter = None
        self._pass_is_empty = True

    def __aiter__(self):
        return self

    async def __anext__(self):
        while self._count != 0:
            if self._source_iter is None:
                self._source_iter = self._source.get_iter(self._session_id)
                self._pass_is_empty = True

            try:
                sample = await aioitertools.next(self._source_iter)
                self._pass_is_empty = False
                return sample
            except StopAsyncIteration:
                self._source_iter = None
                if self._pass_is_empty:
                    # an empty pass would repeat forever
                    self._count = 0
                elif self._count > 0:
                    self._count -= 1
        else:
            raise StopAsyncIteration()


class RepeatDataOperation:
    def __init__(self, *, source, count):
        self._source = source
        self._count = count

    def get_iter(self, session_id):
        return _RepeatIterator(session_id, self._source, self._count)
