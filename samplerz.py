"""This file contains an implementation of the Gaussian sampler over Z of Falcon.

See Section 3.9.3 of the Falcon specification: https://falcon-sign.info/
"""
# Importing dependencies
import logging
from math import floor
from bignum import BigNum, UINT64_MASK
from rng import RandomReader, randombytes
from samplerz_constants import RCDT, C, RCDT_PREC_LEN
from samplerz_constants import INV_2SIGMA2, LN2, ILN2


logger = logging.getLogger(__name__)


class Sampler:
    """
    This class samples integers from discrete Gaussians over Z.

    A Sampler borrows a randomness source (default: secrets.token_bytes)
    and owns two BigNum registers and three byte buffers, reused by every
    call. A Sampler must not be used by two threads at the same time.
    """

    def __init__(self, randombytes=randombytes):
        """Initialize a sampler drawing its randomness from randombytes."""
        self.reader = RandomReader(randombytes)
        self.y = BigNum()
        self.z = BigNum()
        self.basesampler_rb = bytearray(RCDT_PREC_LEN)
        self.samplerz_rb = bytearray(1)
        self.berexp_rb = bytearray(1)
        logger.debug("New sampler over %r", randombytes)

    def basesampler(self):
        """
        Sample z0 in {0, 1, ..., 18} with a distribution
        very close to the half-Gaussian D_{Z+, 0, MAX_SIGMA}.
        """
        u = self.y
        self.reader.read(self.basesampler_rb)
        u.set_bytes(self.basesampler_rb)
        z0 = 0
        # The whole table is scanned, whatever the value of u
        for elt in RCDT:
            z0 += int(u < elt)
        return z0

    def approxexp(self, x, ccs):
        """
        Compute an approximation of 2^63 * ccs * exp(-x).

        Input:
        - a floating-point number x in [0, ln(2)]
        - a scaling factor ccs in [0, 1]

        Output:
        - an integral approximation of 2^63 * ccs * exp(-x), on 64 bits.
        """
        y, z = self.y, self.z
        y.set(C[0])
        # Since z is positive, int is equivalent to floor
        z.set_uint64(int(x * (1 << 63)))
        for elt in C[1:]:
            y.mul(z, y)
            y.rsh(y, 63)
            y.sub(elt, y)
        z.set_uint64(int(ccs * (1 << 63)))
        y.mul(z, y)
        y.rsh(y, 63)
        return y.uint64()

    def berexp(self, x, ccs):
        """
        Return a single bit, equal to 1 with probability ~ ccs * exp(-x).
        Both inputs x and ccs MUST be positive.
        """
        s = int(x * ILN2)
        # LN2 and ILN2 are rounded, so r may land a hair below 0
        r = max(x - s * LN2, 0.)
        s = min(s, 63)
        z = (((self.approxexp(r, ccs) << 1) - 1) & UINT64_MASK) >> s
        # Compare z with a uniform 64-bit integer, one byte at a time
        for i in range(56, -8, -8):
            self.reader.read(self.berexp_rb)
            w = self.berexp_rb[0] - ((z >> i) & 0xFF)
            if w:
                break
        return (w < 0)

    def samplerz(self, mu, sigma, sigmin):
        """
        Given floating-point values mu, sigma (and sigmin),
        output an integer z according to the discrete
        Gaussian distribution D_{Z, mu, sigma}.

        Input:
        - the center mu
        - the standard deviation sigma
        - a scaling factor sigmin
        The inputs MUST verify 1 < sigmin < sigma < MAX_SIGMA.

        Output:
        - a sample z from the distribution D_{Z, mu, sigma}.
        """
        # assert(sigma < MAX_SIGMA), sigma
        # assert(sigmin < sigma)
        # assert(1 < sigmin)
        s = int(floor(mu))
        r = mu - s
        dss = 1 / (2 * sigma * sigma)
        ccs = sigmin / sigma
        while(1):
            # Sampler z0 from a Half-Gaussian
            z0 = self.basesampler()
            # Convert z0 into a pseudo-Gaussian sample z
            self.reader.read(self.samplerz_rb)
            b = self.samplerz_rb[0] & 1
            z = b + (2 * b - 1) * z0
            # Rejection sampling to obtain a true Gaussian sample
            x = ((z - r) ** 2) * dss
            x -= (z0 ** 2) * INV_2SIGMA2
            if self.berexp(x, ccs):
                return z + s


def samplerz(mu, sigma, sigmin, randombytes=randombytes):
    """
    Output a sample of D_{Z, mu, sigma}, see Sampler.samplerz.
    Also takes as (optional) input the randomness source
    (default: secrets.token_bytes).
    """
    return Sampler(randombytes).samplerz(mu, sigma, sigmin)
