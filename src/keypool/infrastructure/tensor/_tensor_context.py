from typing import Any, Callable, Optional, Sequence
from dataclasses import dataclass, field


@dataclass
class Context:
    """
    Per-call context attached to the result of an operation.

    A `Context` records the information required to compute derivatives for a
    single invocation of an operation. It is created fresh for every call, so
    layers themselves never carry per-call state.

    Attributes
    ----------
    parents : Sequence[Any]
        The inputs used to compute the output.
    backward_fn : Callable[[Any], Any]
        A function that takes the gradient w.r.t. the output (`grad_out`) and
        returns the gradient w.r.t. the input.
    r_backward_fn : Callable[[Any], Any] or None
        Optional R-operator counterpart of `backward_fn`, routing the
        R-derivative of the output gradient back to the input.
    saved_tensors : list[Any]
        Arrays explicitly saved during the forward pass for use in backward
        (e.g., cached arg-max indices).
    saved_meta : dict[str, Any]
        Non-tensor metadata required for backward (e.g., shapes, spans).

    Notes
    -----
    `saved_tensors` and `saved_meta` are intentionally generic to support a wide
    range of operations without coupling the Context type to specific kernels.
    """

    parents: Sequence[Any]
    backward_fn: Callable[[Any], Any]
    r_backward_fn: Optional[Callable[[Any], Any]] = None
    saved_tensors: list[Any] = field(default_factory=list)
    saved_meta: dict[str, Any] = field(default_factory=dict)

    def save_for_backward(self, *tensors: Any) -> None:
        """
        Save arrays for use during the backward computation.

        Parameters
        ----------
        *tensors : Any
            Any number of arrays to be stored in `saved_tensors`.
        """
        self.saved_tensors.extend(tensors)
