"""Constants used by the Gaussian sampler over Z."""
from bignum import BigNum


# Upper bound on all the values of sigma
# INV_2SIGMA2 = 1 / (2 * (MAX_SIGMA ** 2))
MAX_SIGMA = 1.8205
INV_2SIGMA2 = 0.15086504887537272

# Precision of RCDT, in bits and in bytes
RCDT_PREC = 72
RCDT_PREC_LEN = RCDT_PREC >> 3

# ln(2) and 1 / ln(2), with ln the natural logarithm
LN2 = 0.69314718056
ILN2 = 1.44269504089


# RCDT is the reverse cumulative distribution table of a distribution that
# is very close to a half-Gaussian of parameter MAX_SIGMA.
# RCDT[i] = 2^72 * Pr[X > i], see Table 3.1 of the Falcon specification.
RCDT = [BigNum.from_hex(elt) for elt in [
    "0xA3F7F42ED3AC391802",
    "0x54D32B181F3F7DDB82",
    "0x227DCDD0934829C1FF",
    "0xAD1754377C7994AE4",
    "0x295846CAEF33F1F6F",
    "0x774AC754ED74BD5F",
    "0x1024DD542B776AE4",
    "0x1A1FFDC65AD63DA",
    "0x1F80D88A7B6428",
    "0x1C3FDB2040C69",
    "0x12CF24D031FB",
    "0x949F8B091F",
    "0x3665DA998",
    "0xEBF6EBB",
    "0x2F5D7E",
    "0x7098",
    "0xC6",
    "0x1"]]


# C contains the coefficients of a polynomial that approximates exp(-x)
# More precisely, the value:
# (2 ** -63) * sum(C[12 - i] * (x ** i) for i in range(13))
# Should be very close to exp(-x).
# This polynomial is lifted from FACCT: https://doi.org/10.1109/TC.2019.2940949
C = [BigNum.from_int(elt) for elt in [
    0x00000004741183A3,
    0x00000036548CFC06,
    0x0000024FDCBF140A,
    0x0000171D939DE045,
    0x0000D00CF58F6F84,
    0x000680681CF796E3,
    0x002D82D8305B0FEA,
    0x011111110E066FD0,
    0x0555555555070F00,
    0x155555555581FF00,
    0x400000000002B400,
    0x7FFFFFFFFFFF4800,
    0x8000000000000000]]


# Parameter sets of Falcon, restricted to what concerns the sampler:
# - sigma is the std. dev. of signatures (Gaussians over a lattice)
# - sigmin is a lower bound on the std. dev. of each Gaussian over Z
Params = {
    128: {
        "sigma": 160.30114421975344,
        "sigmin": 1.235926056771981,
    },
    256: {
        "sigma": 163.04153322607107,
        "sigmin": 1.2570545284063217,
    },
    512: {
        "sigma": 165.7366171829776,
        "sigmin": 1.2778336969128337,
    },
    1024: {
        "sigma": 168.38857144654395,
        "sigmin": 1.298280334344292,
    },
}
