import collections

import numpy as np
import torch

from ._errors import InvalidArgumentError


class TensorSpec(collections.namedtuple('TensorSpec', ['dtype', 'shape'])):
    """Describes one component of a dataset element.

    `shape` is a tuple of ints or `None` entries (unknown dimension), or
    `None` itself when even the rank is unknown.
    """

    __slots__ = ()

    def __new__(cls, dtype, shape=None):
        if shape is not None:
            shape = tuple(None if d is None else int(d) for d in shape)
        return super().__new__(cls, as_dtype(dtype), shape)

    @property
    def rank(self):
        return None if self.shape is None else len(self.shape)

    def __repr__(self):
        return f'TensorSpec(dtype={self.dtype}, shape={self.shape})'


def as_dtype(tag):
    if isinstance(tag, torch.dtype):
        return tag
    if isinstance(tag, str):
        dtype = getattr(torch, tag, None)
        if isinstance(dtype, torch.dtype):
            return dtype
    raise InvalidArgumentError(f'{tag!r} is not a valid type tag')


def as_tensor(value, dtype=None):
    if dtype is not None:
        dtype = as_dtype(dtype)

    try:
        if isinstance(value, torch.Tensor):
            tensor = value
        elif isinstance(value, np.ndarray):
            tensor = torch.from_numpy(value)
        else:
            tensor = torch.as_tensor(value)
    except (TypeError, ValueError, RuntimeError) as e:
        raise InvalidArgumentError(f'Cannot convert {type(value).__name__} to a tensor: {e}') from e

    if dtype is not None and tensor.dtype != dtype:
        tensor = tensor.to(dtype)
    return tensor


def spec_for(tensor):
    return TensorSpec(tensor.dtype, tuple(tensor.shape))


def is_compatible_shape(expected, shape):
    if expected is None or shape is None:
        return True
    if len(expected) != len(shape):
        return False
    return all(e is None or s is None or e == s for e, s in zip(expected, shape))


def is_compatible(spec, tensor):
    return spec.dtype == tensor.dtype and is_compatible_shape(spec.shape, tuple(tensor.shape))


def is_compatible_structure(expected, specs):
    if len(expected) != len(specs):
        return False
    return all(e.dtype == s.dtype and is_compatible_shape(e.shape, s.shape) for e, s in zip(expected, specs))


def most_specific_compatible_shape(a, b):
    if a is None or b is None or len(a) != len(b):
        return None
    return tuple(x if x == y else None for x, y in zip(a, b))


def batched(spec, batch_size=None):
    if spec.shape is None:
        return spec
    return TensorSpec(spec.dtype, (batch_size,) + spec.shape)


def unbatched(spec):
    if spec.shape is None:
        return spec
    if not len(spec.shape):
        raise InvalidArgumentError('Cannot unbatch a rank-0 component')
    return TensorSpec(spec.dtype, spec.shape[1:])


def flatten(value):
    """Turns a single tensor or a list/tuple of tensors into a component tuple."""
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


def to_element(value, specs=None):
    components = flatten(value)

    if specs is None:
        return tuple(as_tensor(c) for c in components)

    if len(components) != len(specs):
        raise InvalidArgumentError(
            f'Expected an element of {len(specs)} components, got {len(components)}')

    element = tuple(as_tensor(c, s.dtype) for c, s in zip(components, specs))
    for t, s in zip(element, specs):
        if not is_compatible_shape(s.shape, tuple(t.shape)):
            raise InvalidArgumentError(f'Component of shape {tuple(t.shape)} does not match {s}')

    return element


def check_element(element, specs):
    if len(element) != len(specs):
        raise InvalidArgumentError(
            f'Expected an element of {len(specs)} components, got {len(element)}')
    for t, s in zip(element, specs):
        if not is_compatible(s, t):
            raise InvalidArgumentError(f'Component {spec_for(t)} does not match {s}')


def make_specs(output_types, output_shapes=None):
    output_types = flatten(output_types)
    if output_shapes is None:
        output_shapes = (None,) * len(output_types)
    else:
        output_shapes = tuple(output_shapes)
        # a single shape may be passed as a bare tuple of dims
        if len(output_types) == 1 and (not output_shapes or not isinstance(output_shapes[0], (list, tuple))):
            output_shapes = (output_shapes,)

    assert len(output_shapes) == len(output_types), \
        'output_shapes: must have one shape per output type'

    return tuple(TensorSpec(as_dtype(t), s) for t, s in zip(output_types, output_shapes))
