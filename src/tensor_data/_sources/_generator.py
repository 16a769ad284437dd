import aioitertools

from .._structure import to_element


class _GeneratorIterator:
    def __init__(self, session_id, iterator, specs):
        self._session_id = session_id
        self._iter = iterator
        self._specs = specs

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._iter is None:
            raise StopAsyncIteration()

        try:
            sample = await aioitertools.next(self._iter)
        except StopAsyncIteration:
            self._iter = None
            raise

        return to_element(sample, self._specs)


class GeneratorDataSource:
    def __init__(self, *, generator, args=None, specs):
        if args is None:
            args = tuple()

        self._generator = generator
        self._args = args
        self._specs = specs

    def get_iter(self, session_id):
        return _GeneratorIterator(session_id, aioitertools.iter(self._generator(*self._args)), self._specs)
