# mfm/fm_coefficients.py
import math
import logging

import numpy as np
import torch

from mfm.coefficients import Coefficients
from mfm.exceptions import DimensionMismatchError, CoefficientsDecodeError
from mfm.gaussian import GaussianRandom

logger = logging.getLogger(__name__)

DTYPE = torch.float64


def _check_reg(reg):
    if len(reg) != 3:
        raise ValueError(f"Expected 3 regularization values [bias, first, second], got {len(reg)}")
    return [float(r) for r in reg]


def _soft_threshold(values, threshold):
    # Entries pushed to zero are stored as +0.0, i.e. dropped from the active set.
    shrunk = torch.sign(values) * torch.clamp(values.abs() - threshold, min=0.0)
    return torch.where(shrunk != 0, shrunk, torch.zeros_like(shrunk))


def _format_float(value):
    return repr(float(value))


class FmCoefficients(Coefficients):
    """
    Factorization Machine coefficients: bias (0th order), per-feature weights
    (1st order) and a num_interact_features x num_factors latent factor matrix
    (2nd order).

    Each group is switched on or off by its flag. Arithmetic and
    regularization skip disabled groups, whatever they happen to store.
    Fresh instances draw every enabled group from Normal(init_mean, init_stdev)
    using the injected GaussianRandom; disabled groups start at zero.
    """

    def __init__(self, num_features, num_interact_features, num_factors,
                 use_bias=True, use_first_order=True, use_second_order=True,
                 init_mean=0.0, init_stdev=0.01, rng=None):
        for name, size in (("num_features", num_features),
                           ("num_interact_features", num_interact_features),
                           ("num_factors", num_factors)):
            if size < 0:
                raise ValueError(f"{name} must be non-negative, got {size}")

        self._set_config(use_bias, use_first_order, use_second_order, init_mean, init_stdev, rng)
        self.rng = rng if rng is not None else GaussianRandom()

        self.bias = self.rng.scalar(init_mean, init_stdev) if use_bias else 0.0
        if use_first_order:
            self._weights = self.rng.vector(init_mean, init_stdev, num_features)
        else:
            self._weights = torch.zeros(num_features, dtype=DTYPE)
        if use_second_order:
            self._factors = self.rng.matrix(init_mean, init_stdev, num_interact_features, num_factors)
        else:
            self._factors = torch.zeros(num_interact_features, num_factors, dtype=DTYPE)

    @classmethod
    def from_values(cls, bias, weights, factors,
                    use_bias=True, use_first_order=True, use_second_order=True,
                    init_mean=0.0, init_stdev=0.0, rng=None):
        """Builds coefficients from explicit values. The inputs are copied."""
        weights = torch.as_tensor(weights, dtype=DTYPE).clone()
        factors = torch.as_tensor(factors, dtype=DTYPE).clone()
        if weights.dim() != 1:
            raise ValueError(f"weights must be 1-D, got shape {tuple(weights.shape)}")
        if factors.dim() != 2:
            raise ValueError(f"factors must be 2-D, got shape {tuple(factors.shape)}")

        coeffs = cls.__new__(cls)
        coeffs._set_config(use_bias, use_first_order, use_second_order, init_mean, init_stdev, rng)
        coeffs.bias = float(bias)
        coeffs._weights = weights
        coeffs._factors = factors
        return coeffs

    def _set_config(self, use_bias, use_first_order, use_second_order, init_mean, init_stdev, rng):
        self._use_bias = bool(use_bias)
        self._use_first_order = bool(use_first_order)
        self._use_second_order = bool(use_second_order)
        self.init_mean = float(init_mean)
        self.init_stdev = float(init_stdev)
        self.rng = rng

    # --- Structure ---
    @property
    def use_bias(self):
        return self._use_bias

    @property
    def use_first_order(self):
        return self._use_first_order

    @property
    def use_second_order(self):
        return self._use_second_order

    @property
    def flags(self):
        return self._use_bias, self._use_first_order, self._use_second_order

    @property
    def weights(self):
        return self._weights

    @property
    def factors(self):
        return self._factors

    @property
    def num_features(self):
        return self._weights.shape[0]

    @property
    def num_interact_features(self):
        return self._factors.shape[0]

    @property
    def num_factors(self):
        return self._factors.shape[1]

    @property
    def shape(self):
        return self.num_features, self.num_interact_features, self.num_factors

    def num_active_factors(self):
        return int(torch.count_nonzero(self._factors).item())

    def __repr__(self):
        return (f"FmCoefficients(num_features={self.num_features}, "
                f"num_interact_features={self.num_interact_features}, "
                f"num_factors={self.num_factors}, "
                f"active_factors={self.num_active_factors()}, flags={self.flags})")

    # --- Copies ---
    def copy_empty(self):
        return FmCoefficients(self.num_features, self.num_interact_features, self.num_factors,
                              *self.flags, init_mean=self.init_mean, init_stdev=self.init_stdev,
                              rng=self.rng)

    def copy(self):
        return FmCoefficients.from_values(self.bias, self._weights, self._factors, *self.flags,
                                          init_mean=self.init_mean, init_stdev=self.init_stdev,
                                          rng=self.rng)

    # --- In-place combination ---
    def _check_compatible(self, other):
        if not isinstance(other, FmCoefficients):
            raise DimensionMismatchError(f"Cannot combine FmCoefficients with {type(other).__name__}")
        if self.shape != other.shape:
            raise DimensionMismatchError(
                f"Coefficient shapes differ: {self.shape} vs {other.shape} "
                "(num_features, num_interact_features, num_factors)")

    def add_inplace(self, other):
        self._check_compatible(other)
        if self._use_bias:
            self.bias += other.bias
        if self._use_first_order:
            self._weights += other.weights.to(self._weights.device)
        if self._use_second_order:
            self._factors += other.factors.to(self._factors.device)
        return self

    def subtract_inplace(self, other):
        self._check_compatible(other)
        if self._use_bias:
            self.bias -= other.bias
        if self._use_first_order:
            self._weights -= other.weights.to(self._weights.device)
        if self._use_second_order:
            self._factors -= other.factors.to(self._factors.device)
        return self

    # --- Scalar arithmetic (new instances) ---
    def plus(self, addend):
        result = self.copy()
        if self._use_bias:
            result.bias += addend
        if self._use_first_order:
            result._weights += addend
        if self._use_second_order:
            result._factors += addend
        return result

    def times(self, multiplier):
        result = self.copy()
        if self._use_bias:
            result.bias *= multiplier
        if self._use_first_order:
            result._weights *= multiplier
        if self._use_second_order:
            result._factors *= multiplier
        return result

    def divided_by(self, divisor):
        # Zero divisors are the caller's problem.
        result = self.copy()
        if self._use_bias:
            result.bias /= divisor
        if self._use_first_order:
            result._weights /= divisor
        if self._use_second_order:
            result._factors /= divisor
        return result

    # --- Regularization ---
    def l2_reg_value(self, reg):
        r0, r1, r2 = _check_reg(reg)
        zero_reg = self.bias * self.bias * r0 if self._use_bias else 0.0
        first_reg = torch.sum(self._weights ** 2).item() * r1 if self._use_first_order else 0.0
        second_reg = torch.sum(self._factors ** 2).item() * r2 if self._use_second_order else 0.0
        return 0.5 * (zero_reg + first_reg + second_reg)

    def l2_reg_gradient(self, reg):
        r0, r1, r2 = _check_reg(reg)
        result = self.copy()
        if self._use_bias:
            result.bias *= r0
        if self._use_first_order:
            result._weights *= r1
        if self._use_second_order:
            result._factors *= r2
        return result

    def l1_reg_value(self, reg):
        r0, r1, r2 = _check_reg(reg)
        zero_reg = abs(self.bias) * r0 if self._use_bias else 0.0
        first_reg = torch.sum(self._weights.abs()).item() * r1 if self._use_first_order else 0.0
        second_reg = torch.sum(self._factors.abs()).item() * r2 if self._use_second_order else 0.0
        return zero_reg + first_reg + second_reg

    def l1_shrink(self, reg, step_size):
        """
        Soft-thresholds every enabled group in place and returns self.

        Bias and weights move toward zero by reg * step_size; factors by
        reg * step_size / num_factors so the penalty is spread over the latent
        dimensions. Values that reach zero are dropped from the active set.
        """
        r0, r1, r2 = _check_reg(reg)

        if self._use_bias:
            threshold = r0 * step_size
            self.bias = float(np.sign(self.bias)) * max(0.0, abs(self.bias) - threshold)

        if self._use_first_order:
            active_before = int(torch.count_nonzero(self._weights).item())
            self._weights = _soft_threshold(self._weights, r1 * step_size)
            dropped = active_before - int(torch.count_nonzero(self._weights).item())
            logger.debug(f"L1 shrink dropped {dropped}/{active_before} active weights.")

        if self._use_second_order and self.num_factors > 0:
            active_before = self.num_active_factors()
            self._factors = _soft_threshold(self._factors, r2 * step_size / self.num_factors)
            dropped = active_before - self.num_active_factors()
            logger.debug(f"L1 shrink dropped {dropped}/{active_before} active factor entries.")

        return self

    def norm(self):
        zero_sum = self.bias * self.bias if self._use_bias else 0.0
        first_sum = torch.sum(self._weights ** 2).item() if self._use_first_order else 0.0
        second_sum = torch.sum(self._factors ** 2).item() if self._use_second_order else 0.0
        return math.sqrt(zero_sum + first_sum + second_sum)

    # --- Serialization ---
    def encode(self):
        """
        Text form used for checkpoints:

            <W>:<R>,<C>,<A>:<k0>,<k1>,<k2>
            <bias>
            <index>,<value>          W lines, largest value first
            <row>,<col>,<value>      A lines, one per non-zero factor

        No trailing newline.
        """
        flags = ",".join("true" if flag else "false" for flag in self.flags)
        active = torch.nonzero(self._factors).tolist()
        lines = [f"{self.num_features}:{self.num_interact_features},{self.num_factors},{len(active)}:{flags}",
                 _format_float(self.bias)]

        # 1st order: descending by value, NaN last, ties keep index order
        ranked = sorted(enumerate(self._weights.tolist()), key=lambda pair: (math.isnan(pair[1]), -pair[1]))
        lines.extend(f"{index},{_format_float(value)}" for index, value in ranked)

        # 2nd order: non-zero entries only
        factor_values = self._factors.tolist()
        lines.extend(f"{row},{col},{_format_float(factor_values[row][col])}" for row, col in active)

        return "\n".join(lines)

    @classmethod
    def decode(cls, text):
        """Rebuilds coefficients from encode() output. Raises CoefficientsDecodeError."""
        if not text:
            raise CoefficientsDecodeError("Encoded coefficients are empty")
        if text.endswith("\n"):
            text = text[:-1]
        lines = text.split("\n")

        num_features, rows, cols, num_active, flags = _parse_header(lines[0])
        expected_lines = 2 + num_features + num_active
        if len(lines) != expected_lines:
            raise CoefficientsDecodeError(
                f"Header announces {expected_lines} lines but found {len(lines)}")

        bias = _parse_float(lines[1].strip(), 2)

        weights = torch.zeros(num_features, dtype=DTYPE)
        seen = set()
        for offset in range(num_features):
            line_number = offset + 3
            tokens = _split_tokens(lines[offset + 2], 2, line_number)
            index = _parse_index(tokens[0], num_features, line_number)
            if index in seen:
                raise CoefficientsDecodeError(f"Weight index {index} appears more than once", line_number)
            seen.add(index)
            weights[index] = _parse_float(tokens[1], line_number)

        factors = torch.zeros(rows, cols, dtype=DTYPE)
        seen = set()
        for offset in range(num_active):
            line_number = offset + num_features + 3
            tokens = _split_tokens(lines[offset + num_features + 2], 3, line_number)
            row = _parse_index(tokens[0], rows, line_number)
            col = _parse_index(tokens[1], cols, line_number)
            if (row, col) in seen:
                raise CoefficientsDecodeError(f"Factor entry ({row},{col}) appears more than once", line_number)
            seen.add((row, col))
            factors[row, col] = _parse_float(tokens[2], line_number)

        logger.debug(f"Decoded FM coefficients: {num_features} weights, {rows}x{cols} factors "
                     f"({num_active} active), flags={flags}")
        return cls.from_values(bias, weights, factors, *flags)


# --- Decoding helpers ---
def _split_tokens(line, count, line_number):
    tokens = [token.strip() for token in line.split(",")]
    if len(tokens) != count:
        raise CoefficientsDecodeError(f"Expected {count} comma-separated fields, got {len(tokens)}", line_number)
    return tokens


def _parse_int(token, line_number):
    try:
        return int(token)
    except ValueError:
        raise CoefficientsDecodeError(f"Not an integer: {token!r}", line_number) from None


def _parse_float(token, line_number):
    try:
        return float(token)
    except ValueError:
        raise CoefficientsDecodeError(f"Not a number: {token!r}", line_number) from None


def _parse_index(token, size, line_number):
    index = _parse_int(token, line_number)
    if not 0 <= index < size:
        raise CoefficientsDecodeError(f"Index {index} out of range [0, {size})", line_number)
    return index


def _parse_flag(token):
    value = token.strip().lower()
    if value not in ("true", "false"):
        raise CoefficientsDecodeError(f"Flag must be 'true' or 'false', got {token!r}", 1)
    return value == "true"


def _parse_header(line):
    sections = line.split(":")
    if len(sections) != 3:
        raise CoefficientsDecodeError(f"Header needs 3 ':'-separated sections, got {len(sections)}", 1)

    num_features = _parse_int(sections[0].strip(), 1)
    rows, cols, num_active = (_parse_int(token, 1) for token in _split_tokens(sections[1], 3, 1))
    flags = tuple(_parse_flag(token) for token in _split_tokens(sections[2], 3, 1))

    if min(num_features, rows, cols, num_active) < 0:
        raise CoefficientsDecodeError("Header sizes must be non-negative", 1)
    if num_active > rows * cols:
        raise CoefficientsDecodeError(f"{num_active} active factor entries do not fit a {rows}x{cols} matrix", 1)
    return num_features, rows, cols, num_active, flags
