"""
This file implements tests for the Gaussian sampler over Z.

Test the code with:
> python test.py
or
> pytest
"""
import logging
from io import BytesIO
from math import exp, log, sqrt
import numpy as np
from scipy import stats
from random import Random, randint, uniform
from bignum import BigNum, BIGNUM_MASK, UINT64_MASK
from rng import RandomReader, RandomnessError
from rng import shake_randombytes, bytes_randombytes
from samplerz import Sampler, samplerz
from samplerz_constants import RCDT, C, RCDT_PREC, MAX_SIGMA, Params
import saga
# https://stackoverflow.com/a/25823885/4143624
from timeit import default_timer as timer


"""
Known-answer tests for samplerz.
octets is the exact stream of random bytes consumed by the sampler,
z is the expected output.
"""
sampler_KAT = [
    # z0 = 0, b = 1, accepted at the first byte
    {"mu": 0., "sigma": 1.5, "sigmin": 1.3,
     "octets": "ff" * 9 + "01" + "00",
     "z": 1},
    # Rejected at the first try, then z0 = 0, b = 0, accepted
    {"mu": 5., "sigma": 1.5, "sigmin": 1.3,
     "octets": "ff" * 9 + "01" + "ff" + "ff" * 9 + "00" + "10",
     "z": 5},
    # z0 = 2, b = 0: the sample is folded onto the negative side
    {"mu": 0., "sigma": 1.5, "sigmin": 1.3,
     "octets": "227dcdd0934829c1ff" + "00" + "00",
     "z": -2},
    # Only the low bit of the sign byte matters
    {"mu": 0., "sigma": 1.5, "sigmin": 1.3,
     "octets": "ff" * 9 + "fe" + "00",
     "z": 0},
    # Center with a fractional part close to 1
    {"mu": 2.999, "sigma": 1.5, "sigmin": 1.3,
     "octets": "ff" * 9 + "01" + "00",
     "z": 3},
    {"mu": 2.999, "sigma": 1.5, "sigmin": 1.3,
     "octets": "ff" * 9 + "00" + "00",
     "z": 2},
    # Negative center: s = -2, r = 0.75
    {"mu": -1.25, "sigma": 1.5, "sigmin": 1.3,
     "octets": "ff" * 9 + "01" + "00",
     "z": -1},
    # z0 = 18, z = 19 is far in the tail and rejected, then z = 1
    {"mu": 0., "sigma": 1.5, "sigmin": 1.3,
     "octets": "00" * 9 + "01" + "01" + "ff" * 9 + "01" + "00",
     "z": 1},
    # Test vector of the Falcon specification (Section 3.9.3)
    {"mu": -91.90471153063714, "sigma": 1.7037990414754918, "sigmin": 1.2778336969128337,
     "octets": "0fc5442ff043d66e91d1eacac64ea5450a22941edc6c",
     "z": -92},
]


"""
Known-answer test for samplerz over SHAKE256 seeded with b"samplerz":
one sampler draws, in order, one sample for each center of mu.
"""
shake_KAT = {
    "seed": b"samplerz",
    "sigma": 1.7,
    "sigmin": Params[1024]["sigmin"],
    "mu": [0.0, 0.5, -3.25, 12.75, 100.125, -91.90471153063714, 7.0, 1.9375, -0.001, 42.5] + [0.0] * 10,
    "z": [-4, 3, -4, 16, 100, -92, 8, 4, -1, 41, 1, 2, -1, -1, -1, 0, 0, -2, -2, -2],
    "read_bytes": 341,
}


def test_bignum(iterations=100):
    """Test BigNum arithmetic against Python integers."""
    a, b, c = BigNum(), BigNum(), BigNum()
    for i in range(iterations):
        x = randint(0, BIGNUM_MASK)
        y = randint(0, BIGNUM_MASK)
        a.set_bytes(x.to_bytes(32, "big"))
        b.set(BigNum(y))
        assert int(a) == x
        assert a.cmp(b) == (x > y) - (x < y)
        assert (a < b) == (x < y)
        assert int(c.mul(a, b)) == (x * y) & BIGNUM_MASK
        assert int(c.sub(a, b)) == (x - y) & BIGNUM_MASK
        k = randint(0, 300)
        assert int(c.rsh(a, k)) == x >> k
        assert c.uint64() == (x >> k) & UINT64_MASK
        assert c.set(a).uint64() == x & UINT64_MASK
        assert int(c.set_uint64(x)) == x & UINT64_MASK
    # Wrap-around
    assert int(c.sub(BigNum(0), BigNum(1))) == BIGNUM_MASK
    assert int(c.mul(BigNum(1 << 255), BigNum(2))) == 0
    # Only the last 32 bytes of a longer input are used
    assert int(c.set_bytes(b"\x01" + b"\x00" * 31 + b"\x05")) == 5


def test_bignum_hex(iterations=1):
    """Test BigNum.from_hex, and that corrupted constants are rejected."""
    assert int(BigNum.from_hex("0x1F80D88A7B6428")) == 8867391802663976
    assert int(BigNum.from_hex("c6")) == 198
    for s in ["0x1F80D88A7B64y28", "0x", "", "0x-1", "0x 1"]:
        try:
            BigNum.from_hex(s)
        except ValueError:
            continue
        assert False, "{s} was accepted".format(s=s)


def test_tables(iterations=1):
    """Check the integrity of the tables RCDT and C."""
    assert len(RCDT) == 18
    assert len(C) == 13
    assert int(RCDT[0]) < (1 << RCDT_PREC)
    assert int(RCDT[6]) == 1163297957344668388
    assert int(RCDT[8]) == 8867391802663976
    assert int(RCDT[-1]) == 1
    assert all(RCDT[i + 1] < RCDT[i] for i in range(len(RCDT) - 1))
    assert int(C[-1]) == 1 << 63


def test_rng(iterations=1):
    """Test that reads are length-exact and that failures are fatal."""
    reader = RandomReader(bytes_randombytes(bytes(range(10))))
    buf = bytearray(4)
    assert reader.read(buf) == bytearray([0, 1, 2, 3])
    assert reader.read(buf) == bytearray([4, 5, 6, 7])
    assert len(buf) == 4
    try:
        reader.read(buf)
    except RandomnessError:
        pass
    else:
        assert False, "Short read was accepted"

    def broken(k):
        raise OSError("no entropy")
    try:
        RandomReader(broken).read(bytearray(1))
    except RandomnessError as e:
        assert isinstance(e.__cause__, OSError)
    else:
        assert False, "Source failure was not reported"
    # Same seed, same stream
    assert shake_randombytes(b"seed")(64) == shake_randombytes(b"seed")(64)
    assert shake_randombytes(b"seed")(64) != shake_randombytes(b"deeds")(64)


def test_basesampler(iterations=1000):
    """Test the base sampler on the boundaries of RCDT, then on random inputs."""
    for i, elt in enumerate(RCDT):
        # u = RCDT[i] is below RCDT[0], ..., RCDT[i - 1] only
        octets = int(elt).to_bytes(9, "big")
        assert Sampler(bytes_randombytes(octets)).basesampler() == i
        octets = (int(elt) - 1).to_bytes(9, "big")
        assert Sampler(bytes_randombytes(octets)).basesampler() == i + 1
    assert Sampler(bytes_randombytes(b"\xff" * 9)).basesampler() == 0
    sampler = Sampler(shake_randombytes(b"basesampler"))
    for i in range(iterations):
        assert 0 <= sampler.basesampler() <= 18


def test_approxexp(iterations=1000):
    """Test that approxexp(x, ccs) is close to 2^63 * ccs * exp(-x)."""
    sampler = Sampler()
    assert sampler.approxexp(0., 1.) == 1 << 63
    assert abs(sampler.approxexp(log(2), 1.) - (1 << 62)) < (1 << 62) * 1e-9
    for i in range(iterations):
        x = uniform(0, log(2))
        ccs = uniform(0.5, 1)
        ref = (1 << 63) * ccs * exp(-x)
        assert abs(sampler.approxexp(x, ccs) - ref) < ref * 1e-9


def test_berexp(iterations=10000):
    """Test that berexp(x, ccs) accepts with probability ~ ccs * exp(-x)."""
    sampler = Sampler(shake_randombytes(b"berexp"))
    for (x, ccs) in [(0., 1.), (0.1, 0.8), (0.5, 0.8), (1.5, 0.9), (3., 0.7), (60., 1.)]:
        p = ccs * exp(-x)
        freq = sum(sampler.berexp(x, ccs) for _ in range(iterations)) / iterations
        tolerance = 5 * sqrt(p * (1 - p) / iterations) + 1. / iterations
        assert abs(freq - p) < tolerance, (x, ccs, freq, p)


def test_samplerz_KAT(iterations=1):
    """Test samplerz against byte streams whose outcome is known."""
    for D in sampler_KAT:
        stream = BytesIO(bytes.fromhex(D["octets"]))
        z = samplerz(D["mu"], D["sigma"], D["sigmin"], randombytes=stream.read)
        assert z == D["z"], D
        # The whole stream is consumed, and nothing more
        assert stream.read() == b""


def test_samplerz_shake_KAT(iterations=1):
    """Test samplerz against a fixed sequence of samples from a seeded SHAKE256."""
    D = shake_KAT
    randombytes = shake_randombytes(D["seed"])
    sampler = Sampler(randombytes)
    z = [sampler.samplerz(mu, D["sigma"], D["sigmin"]) for mu in D["mu"]]
    assert z == D["z"], z
    # The sampler has consumed exactly read_bytes bytes of the stream
    assert randombytes(16) == shake_randombytes(D["seed"])(D["read_bytes"] + 16)[-16:]


def test_samplerz_exhausted(iterations=1):
    """A randomness source running dry aborts the sampling."""
    try:
        samplerz(0., 1.5, 1.3, randombytes=bytes_randombytes(b"\xff" * 10))
    except RandomnessError:
        pass
    else:
        assert False, "samplerz returned without enough randomness"


def test_samplerz_determinism(iterations=100):
    """Identical random streams give identical sequences of samples."""
    sigmin = Params[1024]["sigmin"]
    for seed in [b"", b"seed", bytes(range(48))]:
        samplers = [Sampler(shake_randombytes(seed)) for _ in range(2)]
        samples = [[sp.samplerz(mu / 7., 1.7, sigmin) for mu in range(-iterations, iterations)]
                   for sp in samplers]
        assert samples[0] == samples[1]


def test_samplerz(nb_mu=4, nb_sig=3, nb_samp=2000):
    """
    Test our Gaussian sampler on a bunch of samples.
    This is done by using a light version of the SAGA test suite,
    see ia.cr/2019/1411.
    """
    prng = Random(1411)
    sigmin = Params[512]["sigmin"]
    sampler = Sampler(shake_randombytes(b"saga"))
    nb_rej = 0
    for i in range(nb_mu):
        mu = prng.uniform(-100, 100)
        for j in range(nb_sig):
            sigma = prng.uniform(sigmin, MAX_SIGMA)
            list_samples = [sampler.samplerz(mu, sigma, sigmin) for _ in range(nb_samp)]
            v = saga.UnivariateSamples(mu, sigma, list_samples)
            if (v.is_valid is False):
                print(v)
                nb_rej += 1
    assert nb_rej <= 1


def test_samplerz_moments(iterations=10000):
    """
    The empirical mean and variance converge to mu and sigma ** 2,
    including for integral centers and centers just below an integer.
    """
    sigma = 1.7
    sigmin = Params[1024]["sigmin"]
    sampler = Sampler(shake_randombytes(b"moments"))
    for mu in [0., 7., -3.999, 0.5, 12.0001]:
        list_samples = [sampler.samplerz(mu, sigma, sigmin) for _ in range(iterations)]
        v = saga.UnivariateSamples(mu, sigma, list_samples)
        assert abs(v.mean - mu) < 0.1, v
        assert abs(v.variance - sigma ** 2) < 0.25, v
        assert v.is_valid, v


def test_saga(iterations=10000):
    """
    saga accepts a histogram matching D_{Z, mu, sigma}, and rejects
    one drawn with another sigma.
    """
    mu, sigma = 0.3, 1.5
    support, pmf = saga.gaussian_pmf(mu, sigma)
    ideal = np.repeat(support, np.round(pmf * iterations).astype(np.int64))
    v = saga.UnivariateSamples(mu, sigma, ideal)
    assert v.is_valid, v
    # The chi-squared threshold is the exact (1 - PMIN)-quantile
    assert abs(v.chi2_max - stats.chi2.ppf(1 - saga.PMIN, v.dof)) < 1e-9
    assert 26 < stats.chi2.ppf(1 - saga.PMIN, 1) < 27
    support, pmf = saga.gaussian_pmf(mu, 1.1)
    narrow = np.repeat(support, np.round(pmf * iterations).astype(np.int64))
    assert not saga.UnivariateSamples(mu, sigma, narrow).is_valid


def wrapper_test(my_test, name, iterations):
    """
    Common wrapper for tests. Run the test, print whether it is successful,
    and if it is, print the running time of each execution.
    """
    d = {True: "OK    ", False: "Not OK"}
    start = timer()
    try:
        my_test(iterations)
        rep = True
    except AssertionError as e:
        logging.getLogger(__name__).error("%s failed: %s", name, e)
        rep = False
    end = timer()
    message = "Test {name}".format(name=name)
    message = message.ljust(20) + ": " + d[rep]
    if rep is True:
        diff = end - start
        msec = round(diff * 1000 / iterations, 3)
        message += " ({msec} msec / execution)".format(msec=msec).rjust(30)
    print(message)


# Dirty trick to fit test_samplerz into our test wrapper
def run_samplerz_saga(iterations):
    test_samplerz(4, 3, iterations)


def battery(iterations=1000):
    """A battery of tests."""
    wrapper_test(test_bignum, "BigNum", iterations)
    wrapper_test(test_bignum_hex, "BigNum hex", 1)
    wrapper_test(test_tables, "Tables", 1)
    wrapper_test(test_rng, "RNG", 1)
    wrapper_test(test_saga, "SAGA", 10 * iterations)
    wrapper_test(test_basesampler, "BaseSampler", iterations)
    wrapper_test(test_approxexp, "ApproxExp", iterations)
    wrapper_test(test_berexp, "BerExp", 10 * iterations)
    wrapper_test(test_samplerz_KAT, "SamplerZ KATs", 1)
    wrapper_test(test_samplerz_shake_KAT, "SamplerZ SHAKE KAT", 1)
    wrapper_test(test_samplerz_exhausted, "SamplerZ exhausted", 1)
    wrapper_test(test_samplerz_determinism, "SamplerZ determinism", 100)
    wrapper_test(run_samplerz_saga, "SamplerZ SAGA", 2 * iterations)
    wrapper_test(test_samplerz_moments, "SamplerZ moments", 10 * iterations)
    print("")


# Run all the tests
if (__name__ == "__main__"):
    logging.basicConfig(level=logging.INFO)
    battery()
