"""
This file contains the randomness plumbing of the sampler.

A randomness source is any callable randombytes(k) returning k bytes,
for example secrets.token_bytes, os.urandom or the read method of a
SHAKE256 object. The sampler never talks to a source directly: it goes
through a RandomReader, which makes every read length-exact.
"""
import logging
from io import BytesIO
# Randomness
from secrets import token_bytes as randombytes
# https://pycryptodome.readthedocs.io/en/latest/src/hash/shake256.html
from Crypto.Hash import SHAKE256


logger = logging.getLogger(__name__)


class RandomnessError(Exception):
    """The randomness source could not supply the requested bytes."""


class RandomReader:
    """Length-exact reads from a randomness source."""

    def __init__(self, randombytes=randombytes):
        self.randombytes = randombytes

    def read(self, buf):
        """
        Fill the bytearray buf with fresh random bytes, in the order in
        which the source outputs them.
        Raise RandomnessError if the source fails or runs dry.
        """
        k = len(buf)
        try:
            data = self.randombytes(k)
        except OSError as e:
            logger.error("Randomness source failed: %s", e)
            raise RandomnessError("Randomness source failed") from e
        if len(data) != k:
            logger.error("Randomness source returned %d bytes, %d expected",
                         len(data), k)
            raise RandomnessError("Randomness source exhausted")
        buf[:] = data
        return buf


def shake_randombytes(seed):
    """
    Deterministic randomness source: the output stream of SHAKE256
    seeded with the bytes seed. Only for testing purposes.
    """
    shake = SHAKE256.new(seed)
    return shake.read


def bytes_randombytes(data):
    """
    Randomness source serving the fixed bytestring data, in order.
    Once data is consumed, reads come back short.
    Only for testing purposes.
    """
    return BytesIO(data).read
