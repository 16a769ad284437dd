import aioitertools

from .._errors import InvalidArgumentError


class _ConcatenateIterator:
    def __init__(self, session_id, dataset_sources):
        self._session_id = session_id
        self._dataset_sources = list(dataset_sources)
        self._current = None
        self._dtypes = None

    def __aiter__(self):
        return self

    def _check(self, sample):
        dtypes = tuple(t.dtype for t in sample)
        if self._dtypes is None:
            self._dtypes = dtypes
        elif dtypes != self._dtypes:
            raise InvalidArgumentError(f'Cannot concatenate elements of types {self._dtypes} and {dtypes}')
        return sample

    async def __anext__(self):
        while self._current is not None or len(self._dataset_sources):
            if self._current is None:
                self._current = self._dataset_sources.pop(0).get_iter(self._session_id)

            try:
                return self._check(await aioitertools.next(self._current))
            except StopAsyncIteration:
                self._current = None
        else:
            raise StopAsyncIteration()


class ConcatenateDataSource:
    def __init__(self, *, dataset_sources):
        self._dataset_sources = dataset_sources

    def get_iter(self, session_id):
        return _ConcatenateIterator(session_id, self._dataset_sources)
