"""
Autograd function interface definitions.

This module defines the abstract base classes for differentiable operations
used by the pooling stack. Concrete subclasses implement the forward
computation together with its reverse-mode gradient, and optionally the
forward-mode (R-operator) companions used for Hessian-vector products.

This design is inspired by function-level autograd systems (e.g., PyTorch's
`autograd.Function`) while remaining lightweight and framework-agnostic.
"""

from abc import ABC, abstractmethod
from typing import Any, Union

from ._tensor3 import ITensor3


class Function(ABC):
    """
    Abstract base class for differentiable operations.

    A `Function` represents a single node in the computation graph and
    encapsulates both:
    - the forward computation
    - the backward (gradient) computation

    Subclasses must implement both `forward` and `backward` as static methods.
    Any intermediate values required for gradient computation should be stored
    on the provided `ctx` object during the forward pass.

    Notes
    -----
    - Methods are declared as `@staticmethod` to avoid implicit state on the
      function object itself.
    - The `ctx` argument acts as a per-invocation context, allowing safe reuse
      of `Function` classes across multiple computation graphs and threads.
    """

    @staticmethod
    @abstractmethod
    def forward(ctx, *inputs: Union[ITensor3, Any]) -> Any:
        """
        Perform the forward computation.

        Parameters
        ----------
        ctx : Context
            A mutable context object used to store intermediate values
            required for gradient computation.
        *inputs : ITensor3 or Any
            Input tensor(s) and hyperparameters of the operation.

        Returns
        -------
        Any
            The output resulting from the forward computation.
        """
        ...

    @staticmethod
    @abstractmethod
    def backward(ctx, grad_out: Any) -> Any:
        """
        Compute the gradient with respect to the input.

        Parameters
        ----------
        ctx : Context
            The context object populated during the forward pass.
        grad_out : Any
            Gradient of the loss with respect to the output.

        Returns
        -------
        Any
            Gradient with respect to the input of `forward`.
        """
        ...


class RFunction(Function):
    """
    A `Function` that also supports forward-mode (R-operator) propagation.

    `r_forward` threads a directional derivative through the forward
    computation; `r_backward` routes the R-derivative of an incoming gradient
    back to the input. Both reuse whatever `forward` saved on `ctx`.
    """

    @staticmethod
    @abstractmethod
    def r_forward(ctx, r_input: Any) -> Any:
        """
        Propagate a directional derivative of the input to the output.

        Parameters
        ----------
        ctx : Context
            The context object populated during the forward pass.
        r_input : Any
            Directional derivative of the input (same shape as the input).

        Returns
        -------
        Any
            Directional derivative of the output.
        """
        ...

    @staticmethod
    @abstractmethod
    def r_backward(ctx, r_grad_out: Any) -> Any:
        """
        Route the R-derivative of the output gradient back to the input.

        Parameters
        ----------
        ctx : Context
            The context object populated during the forward pass.
        r_grad_out : Any
            R-derivative of the gradient with respect to the output.

        Returns
        -------
        Any
            R-derivative of the gradient with respect to the input.
        """
        ...
