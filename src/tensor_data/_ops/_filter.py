import inspect

import aioitertools
import numpy as np
import torch

from .._errors import InvalidArgumentError


def _as_bool(value):
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, torch.Tensor) and value.dtype == torch.bool and value.numel() == 1:
        return bool(value.item())
    raise InvalidArgumentError(
        f'A filter predicate must return a boolean scalar, got {type(value).__name__}')


class _Iterator:
    def __init__(self, source_iter, predicate):
        self._source_iter = source_iter

        if inspect.iscoroutinefunction(predicate):
            self._predicate = predicate
        else:
            async def _wrapper(*args):
                return predicate(*args)

            self._predicate = _wrapper

    def __aiter__(self):
        return self

    async def __anext__(self):
        while self._source_iter is not None:
            try:
                sample = await aioitertools.next(self._source_iter)
            except StopAsyncIteration:
                self._source_iter = None
                raise

            if _as_bool(await self._predicate(*sample)):
                return sample
        else:
            raise StopAsyncIteration()


class FilterDataOperation:
    def __init__(self, *, source, predicate):
        self._source = source
        self._predicate = predicate

    def get_iter(self, session_id):
        return _Iterator(self._source.get_iter(session_id), self._predicate)
