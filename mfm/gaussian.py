# mfm/gaussian.py
import torch


class GaussianRandom:
    """
    Normal-distribution source used to initialize fresh coefficients.
    Pass one instance around explicitly; seed it for reproducible models.
    """

    def __init__(self, seed=None, dtype=torch.float64):
        self.dtype = dtype
        self.generator = torch.Generator()
        if seed is None:
            self.generator.seed()
        else:
            self.generator.manual_seed(seed)

    def _sample(self, mean, stdev, shape):
        if stdev < 0:
            raise ValueError(f"stdev must be non-negative, got {stdev}")
        out = torch.empty(shape, dtype=self.dtype)
        return out.normal_(float(mean), float(stdev), generator=self.generator)

    def scalar(self, mean, stdev):
        return self._sample(mean, stdev, (1,)).item()

    def vector(self, mean, stdev, length):
        return self._sample(mean, stdev, (length,))

    def matrix(self, mean, stdev, rows, cols):
        return self._sample(mean, stdev, (rows, cols))
