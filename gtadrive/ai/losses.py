"""Loss functions used by the gradient trainer."""

from typing import Callable, Dict, NamedTuple, Union

from gtadrive.errors import ShapeMismatchError
from gtadrive.maths.matrix import Matrix


class Loss(NamedTuple):
    """Scalar loss and its derivative with respect to the prediction."""
    name: str
    func: Callable[[Matrix, Matrix], float]
    derivative: Callable[[Matrix, Matrix], Matrix]


def _check_shapes(pred: Matrix, target: Matrix) -> None:
    if pred.shape != target.shape:
        raise ShapeMismatchError(f"Prediction {pred.shape} does not match target {target.shape}")


def _mse(pred: Matrix, target: Matrix) -> float:
    _check_shapes(pred, target)
    return pred.sub(target).pow(2).mean()


def _mse_derivative(pred: Matrix, target: Matrix) -> Matrix:
    # Already averaged over every cell of the batch
    _check_shapes(pred, target)
    return pred.sub(target).mul(2.0 / pred.size)


MSE = Loss(name='mse', func=_mse, derivative=_mse_derivative)

LOSSES: Dict[str, Loss] = {
    'mse': MSE,
}


def get_loss(loss: Union[str, Loss]) -> Loss:
    if isinstance(loss, Loss):
        return loss
    key = str(loss).lower()
    if key not in LOSSES:
        raise ValueError(f"Unsupported loss: {loss}")
    return LOSSES[key]
