"""If you want to profile your code, you can do as follows:
   - python -m cProfile -o profile/data.pyprof profile_action.py
   - pyprof2calltree -i profile/data.pyprof -o profile/data.callgrind
"""
from samplerz import Sampler
from samplerz_constants import Params
from rng import shake_randombytes

if __name__ == "__main__":
    sampler = Sampler(shake_randombytes(b"profile"))
    sigmin = Params[1024]["sigmin"]
    for i in range(100000):
        sampler.samplerz(i / 1000., 1.7, sigmin)
