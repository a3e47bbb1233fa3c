"""This file contains a fixed-width unsigned integer used by the sampler.

A BigNum is a mutable 256-bit register. Operations write their result
into the register they are called on, so that the sampler can reuse the
same couple of registers across calls instead of building new integers.
Arithmetic wraps modulo 2 ** 256, exactly as fixed-width unsigned
arithmetic does.
"""


"""Width of a BigNum, in bits."""
BIGNUM_BITS = 256
BIGNUM_BYTES = BIGNUM_BITS >> 3
BIGNUM_MASK = (1 << BIGNUM_BITS) - 1
UINT64_MASK = (1 << 64) - 1


class BigNum:
    """
    A 256-bit unsigned integer.

    One can perform:
    - setting the value from big-endian bytes, from a 64-bit integer
      or from another BigNum
    - comparison (cmp, <, ==)
    - in-place multiplication, right shift and subtraction
    - extraction of the low 64 bits
    """

    __slots__ = ("value",)

    def __init__(self, value=0):
        """Initialize a BigNum (default: zero)."""
        self.value = value & BIGNUM_MASK

    @classmethod
    def from_hex(cls, s):
        """
        Build a BigNum from a hexadecimal string (with or without "0x").
        Any character which is not an hexadecimal digit raises ValueError.
        """
        digits = s[2:] if s[:2] in ("0x", "0X") else s
        if digits == "" or any(c not in "0123456789abcdefABCDEF" for c in digits):
            raise ValueError("Invalid hexadecimal constant: {s}".format(s=s))
        return cls(int(digits, 16))

    @classmethod
    def from_int(cls, i):
        """Build a BigNum from an unsigned 64-bit integer."""
        return cls().set_uint64(i)

    def __repr__(self):
        return "BigNum({v})".format(v=hex(self.value))

    def __int__(self):
        return self.value

    def __lt__(self, other):
        return self.value < other.value

    def __eq__(self, other):
        if not isinstance(other, BigNum):
            return NotImplemented
        return self.value == other.value

    __hash__ = None

    def set(self, other):
        """self = other."""
        self.value = other.value
        return self

    def set_bytes(self, b):
        """
        Interpret b as a big-endian unsigned integer.
        If b is longer than 32 bytes, only the last 32 bytes are used.
        """
        self.value = int.from_bytes(b[-BIGNUM_BYTES:], "big")
        return self

    def set_uint64(self, i):
        """Set the value from an integer, truncated to its low 64 bits."""
        self.value = i & UINT64_MASK
        return self

    def cmp(self, other):
        """Return -1, 0 or 1 if self is lower, equal or greater than other."""
        return (self.value > other.value) - (self.value < other.value)

    def mul(self, a, b):
        """self = a * b mod 2 ** 256."""
        self.value = (a.value * b.value) & BIGNUM_MASK
        return self

    def rsh(self, a, n):
        """self = a >> n."""
        self.value = a.value >> n
        return self

    def sub(self, a, b):
        """self = a - b mod 2 ** 256."""
        self.value = (a.value - b.value) & BIGNUM_MASK
        return self

    def uint64(self):
        """Return the low 64 bits of self as an int."""
        return self.value & UINT64_MASK
