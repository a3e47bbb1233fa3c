"""
Light statistical checks for samples of a discrete Gaussian over Z.

This is a small subset of the SAGA test suite, see ia.cr/2019/1411:
given a center mu, a standard deviation sigma and a list of samples,
we compare the empirical mean, variance and histogram of the samples
with the ones of the discrete Gaussian D_{Z, mu, sigma}.
"""
import numpy as np
from math import ceil, floor, sqrt
from scipy import stats


# Samples further than TAILCUT * sigma from the center count as outliers
TAILCUT = 13
# A statistic is rejected when it deviates by more than ZMAX standard deviations
ZMAX = 5.
# Tail probability of a deviation of ZMAX, used as the level of the chi-squared test
PMIN = stats.norm.sf(ZMAX)
# Minimal expected size of a bucket for the chi-squared test
CHI2_BUCKET = 10


def gaussian_pmf(mu, sigma, tailcut=TAILCUT):
    """
    Return (support, pmf) of D_{Z, mu, sigma} restricted to
    [mu - tailcut * sigma, mu + tailcut * sigma].
    """
    lo = int(floor(mu - tailcut * sigma))
    hi = int(ceil(mu + tailcut * sigma))
    support = np.arange(lo, hi + 1)
    rho = np.exp(-((support - mu) ** 2) / (2 * sigma ** 2))
    return support, rho / rho.sum()


class UnivariateSamples:
    """
    Compare a list of samples with the distribution D_{Z, mu, sigma}.

    After initialization, is_valid is True if and only if:
    - there is no outlier
    - the empirical mean and variance are close to the expected ones
    - the chi-squared statistic of the histogram is below its (1 - PMIN)-quantile
    """

    def __init__(self, mu, sigma, list_samples):
        self.mu = mu
        self.sigma = sigma
        samples = np.asarray(list_samples, dtype=np.int64)
        self.nsamples = n = len(samples)
        support, pmf = gaussian_pmf(mu, sigma)
        # Expected moments
        self.exp_mu = float(np.dot(support, pmf))
        centered = support - self.exp_mu
        self.exp_var = float(np.dot(centered ** 2, pmf))
        exp_m4 = float(np.dot(centered ** 4, pmf))
        # Empirical moments
        self.mean = float(np.mean(samples))
        self.variance = float(np.var(samples))
        self.outliers = int(np.count_nonzero(
            (samples < support[0]) | (samples > support[-1])))
        # Deviations, in standard deviations of the estimators
        self.z_mean = (self.mean - self.exp_mu) / sqrt(self.exp_var / n)
        self.z_var = (self.variance - self.exp_var) / sqrt((exp_m4 - self.exp_var ** 2) / n)
        self.chi2, self.dof = self.chi2_statistic(samples, support, pmf)
        self.chi2_max = float(stats.chi2.ppf(1 - PMIN, self.dof))
        self.is_valid = ((self.outliers == 0) and
                         (abs(self.z_mean) < ZMAX) and
                         (abs(self.z_var) < ZMAX) and
                         (self.chi2 < self.chi2_max))

    def chi2_statistic(self, samples, support, pmf):
        """
        Chi-squared statistic of the histogram of samples.
        Buckets of expected size < CHI2_BUCKET are merged with their
        neighbour, so that all buckets are large enough.
        """
        observed = np.bincount(np.clip(samples - support[0], 0, len(support) - 1),
                               minlength=len(support))
        expected = pmf * self.nsamples
        buckets = []
        obs_acc, exp_acc = 0, 0.
        for o, e in zip(observed, expected):
            obs_acc += int(o)
            exp_acc += float(e)
            if exp_acc >= CHI2_BUCKET:
                buckets += [(obs_acc, exp_acc)]
                obs_acc, exp_acc = 0, 0.
        # Whatever remains goes in the last bucket
        if buckets:
            o, e = buckets[-1]
            buckets[-1] = (o + obs_acc, e + exp_acc)
        else:
            buckets = [(obs_acc, exp_acc)]
        chi2 = sum((o - e) ** 2 / e for (o, e) in buckets)
        return chi2, max(len(buckets) - 1, 1)

    def __repr__(self):
        """Print the object in readable form."""
        rep = "Testing a Gaussian sampler with center = {c} and sigma = {s}\n".format(
            c=self.mu, s=self.sigma)
        rep += "Number of samples: {n}\n".format(n=self.nsamples)
        rep += "Mean:      {m} (expected {e}, z = {z:.3f})\n".format(
            m=self.mean, e=self.exp_mu, z=self.z_mean)
        rep += "Variance:  {v} (expected {e}, z = {z:.3f})\n".format(
            v=self.variance, e=self.exp_var, z=self.z_var)
        rep += "Chi2:      {c:.3f} (max {m:.3f}, {d} degrees of freedom)\n".format(
            c=self.chi2, m=self.chi2_max, d=self.dof)
        rep += "Outliers:  {o}\n".format(o=self.outliers)
        rep += "Valid:     {v}\n".format(v=self.is_valid)
        return rep
