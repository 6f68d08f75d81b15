'''
Atomic operations on integer arrays for numba kernels.

numba exposes no CPU atomics, so these are emitted directly as LLVM ``cmpxchg`` and
``atomicrmw xchg`` instructions with sequentially consistent ordering. Both work on a
single element of a one-dimensional integer array and return the previous value.
'''

from numba import types
from numba.core import cgutils
from numba.core.typing import signature
from numba.extending import intrinsic


def _element_pointer(context, builder, aryty, ary, idx):
    array = context.make_array(aryty)(context, builder, ary)
    return cgutils.get_item_pointer(context, builder, aryty, array, [idx], wraparound=False)


def _check_array(ary):
    return isinstance(ary, types.Array) and ary.ndim == 1 and isinstance(ary.dtype, types.Integer)


@intrinsic
def compare_and_swap(typingctx, ary, idx, expected, value):
    """Stores ``value`` at ``ary[idx]`` if it equals ``expected``; returns the old value."""
    if not _check_array(ary):
        return None
    sig = signature(ary.dtype, ary, types.intp, ary.dtype, ary.dtype)

    def codegen(context, builder, sig, args):
        ary_v, idx_v, expected_v, value_v = args
        ptr = _element_pointer(context, builder, sig.args[0], ary_v, idx_v)
        pair = builder.cmpxchg(ptr, expected_v, value_v, 'seq_cst', 'seq_cst')
        return builder.extract_value(pair, 0)

    return sig, codegen


@intrinsic
def atomic_exchange(typingctx, ary, idx, value):
    """Unconditionally stores ``value`` at ``ary[idx]``; returns the old value."""
    if not _check_array(ary):
        return None
    sig = signature(ary.dtype, ary, types.intp, ary.dtype)

    def codegen(context, builder, sig, args):
        ary_v, idx_v, value_v = args
        ptr = _element_pointer(context, builder, sig.args[0], ary_v, idx_v)
        return builder.atomic_rmw('xchg', ptr, value_v, 'seq_cst')

    return sig, codegen
