# mfm/coefficients.py


class Coefficients:
    """
    Base class for the parameters of any model an optimizer can train.

    Methods named *_inplace and l1_shrink mutate the receiver and return it.
    Every other operation returns a new instance and leaves the receiver alone.
    """

    def copy_empty(self):
        """Same shape, flags and init params with freshly drawn values."""
        raise NotImplementedError

    def copy(self):
        """Same shape and content, sharing no storage with the receiver."""
        raise NotImplementedError

    def add_inplace(self, other):
        raise NotImplementedError

    def subtract_inplace(self, other):
        raise NotImplementedError

    def plus(self, addend):
        raise NotImplementedError

    def times(self, multiplier):
        raise NotImplementedError

    def divided_by(self, divisor):
        raise NotImplementedError

    def l2_reg_value(self, reg):
        raise NotImplementedError

    def l2_reg_gradient(self, reg):
        raise NotImplementedError

    def l1_reg_value(self, reg):
        raise NotImplementedError

    def l1_shrink(self, reg, step_size):
        """Proximal L1 step applied to the receiver."""
        raise NotImplementedError

    def norm(self):
        raise NotImplementedError

    def encode(self):
        raise NotImplementedError

    # Operator forms. Coefficient operands combine in place, scalar operands
    # produce a new instance.
    def __iadd__(self, other):
        if not isinstance(other, Coefficients):
            return NotImplemented
        return self.add_inplace(other)

    def __isub__(self, other):
        if not isinstance(other, Coefficients):
            return NotImplemented
        return self.subtract_inplace(other)

    def __add__(self, addend):
        if isinstance(addend, Coefficients):
            return NotImplemented
        return self.plus(addend)

    __radd__ = __add__

    def __mul__(self, multiplier):
        if isinstance(multiplier, Coefficients):
            return NotImplemented
        return self.times(multiplier)

    __rmul__ = __mul__

    def __truediv__(self, divisor):
        if isinstance(divisor, Coefficients):
            return NotImplemented
        return self.divided_by(divisor)
